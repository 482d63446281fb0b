"""
Request body validation.

Services call `parse()` before touching the store or any external service,
so a rejected body never causes side effects.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ValidationFailed

ModelT = TypeVar("ModelT", bound=BaseModel)


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "path", "query")]
    return ".".join(parts) or "body"


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    return [{"field": _field_name(tuple(e.get("loc", ()))), "msg": str(e.get("msg", ""))} for e in errors]


def parse(schema: type[ModelT], payload: Any) -> ModelT:
    if not isinstance(payload, dict):
        raise ValidationFailed(
            "Validation failed",
            errors=[{"field": "body", "msg": "Request body must be a JSON object."}],
        )
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed("Validation failed", errors=field_errors(exc.errors())) from exc
