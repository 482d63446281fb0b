"""
reCAPTCHA token verification.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from core import config, validation
from core.http import CallResult, post_for_success

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class VerifyRequest(BaseModel):
    token: str = Field(..., min_length=1)


async def verify(
    payload: Any,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CallResult:
    request = validation.parse(VerifyRequest, payload)

    secret = config.verify_secret()
    if not secret:
        logger.warning("captcha_verify_skipped reason=missing_secret")
        return CallResult.failure("Bot-check secret is not configured.")

    result = await post_for_success(
        SITEVERIFY_URL,
        name="recaptcha",
        transport=transport,
        data={"secret": secret, "response": request.token},
    )
    logger.info("captcha_verified success=%s failed=%s", result.success, result.failed)
    return result
