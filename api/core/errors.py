"""
Client-visible error taxonomy.

Every failure a route can report is a `ServiceError` subclass with a stable
`kind` and an HTTP status. `api/main.py` turns them into JSON responses.
"""

from __future__ import annotations

from typing import Any


class ServiceError(RuntimeError):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "msg": self.message}


class ValidationFailed(ServiceError):
    kind = "validation_failed"
    status_code = 400

    def __init__(self, message: str, errors: list[dict[str, str]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404


class DuplicateKey(ServiceError):
    kind = "duplicate_key"
    status_code = 409


class StoreUnavailable(ServiceError):
    kind = "store_unavailable"


class StoreConflict(ServiceError):
    kind = "store_conflict"


class DispatchFailed(ServiceError):
    kind = "dispatch_failed"


# Third-party call failures also report `success: false` so the site's
# front-end can keep reading a single field.
class VerificationFailed(ServiceError):
    kind = "verification_failed"

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["success"] = False
        return body


class RegistrationFailed(VerificationFailed):
    kind = "registration_failed"
