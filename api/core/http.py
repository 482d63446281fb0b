"""
Outbound HTTP helpers for third-party APIs (bot-check, CRM).

Calls get one retry on transport failures (connection errors, timeouts).
HTTP error statuses are returned to the caller as-is; they are not retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from . import config

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 1


async def post_with_retry(
    url: str,
    *,
    retries: int = DEFAULT_RETRIES,
    timeout_s: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """
    POST `url`, retrying up to `retries` times on `httpx.TransportError`.

    The last transport error is re-raised once attempts are exhausted.
    """
    timeout = timeout_s if timeout_s is not None else config.http_timeout_s()
    attempts = max(0, retries) + 1

    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await client.post(url, **kwargs)
            except httpx.TransportError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "http_retry url=%s attempt=%s error=%s",
                    url,
                    attempt,
                    type(exc).__name__,
                )


@dataclass(frozen=True)
class CallResult:
    """
    Outcome of a third-party call that answers with `{"success": bool}`.

    `failed` means the call itself did not complete (network, non-2xx,
    unreadable body); `success` is only meaningful when `failed` is False.
    """

    success: bool
    failed: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> CallResult:
        return cls(success=False, failed=True, error=error)


def json_body(resp: httpx.Response) -> dict[str, Any] | None:
    """
    Decode a JSON object body; anything else becomes None.
    """
    try:
        data = resp.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


async def post_for_success(
    url: str,
    *,
    name: str,
    default_success: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> CallResult:
    """
    POST and read the `success` flag of the JSON reply. Never raises for
    network or HTTP failures; those come back as `CallResult.failure`.

    `default_success` is used when a 2xx reply carries no `success` field.
    """
    try:
        resp = await post_with_retry(url, transport=transport, **kwargs)
    except httpx.HTTPError as exc:
        logger.warning("%s_request_failed error=%s", name, type(exc).__name__)
        return CallResult.failure(f"{name} request failed: {type(exc).__name__}")

    if not resp.is_success:
        # Avoid dumping huge bodies; include a small snippet.
        logger.warning("%s_bad_status status=%s body=%s", name, resp.status_code, resp.text[:300])
        return CallResult.failure(f"{name} request failed with status {resp.status_code}")

    data = json_body(resp)
    if data is None:
        logger.warning("%s_bad_body status=%s", name, resp.status_code)
        return CallResult.failure(f"{name} returned a non-JSON response")

    return CallResult(success=bool(data.get("success", default_success)))
