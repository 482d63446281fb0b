"""
Newsletter business logic: subscriber counts and CRM lead registration.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from core import config, validation
from core.http import CallResult, post_for_success

from . import repository, schemas

logger = logging.getLogger(__name__)

MAILBLUSTER_LEADS_URL = "https://api.mailbluster.com/api/leads"


async def newsletter_count() -> int:
    return await repository.count_newsletters()


async def get_newsletter(newsletter_id: int) -> dict[str, Any]:
    return await repository.find_newsletter(newsletter_id)


def build_lead(email: str) -> dict[str, Any]:
    # New leads must confirm by email before they count as subscribed.
    return {"email": email, "subscribed": False, "doubleOptIn": True}


async def register_lead(
    payload: Any,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CallResult:
    """
    Register a newsletter lead with MailBluster.

    The email is validated first; a rejected address never reaches the CRM.
    """
    request = validation.parse(schemas.LeadRequest, payload)

    api_key = config.mailbluster_api_key()
    if not api_key:
        logger.warning("lead_registration_skipped reason=missing_api_key")
        return CallResult.failure("CRM API key is not configured.")

    result = await post_for_success(
        MAILBLUSTER_LEADS_URL,
        name="mailbluster",
        default_success=True,
        transport=transport,
        json=build_lead(str(request.email)),
        headers={"Authorization": api_key},
    )
    logger.info("lead_registration success=%s failed=%s", result.success, result.failed)
    return result
