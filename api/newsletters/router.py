"""
Newsletter API endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body

from core.errors import RegistrationFailed

from . import service

router = APIRouter()


@router.get("/newsletters")
async def newsletter_count() -> int:
    return await service.newsletter_count()


@router.get("/newsletters/{newsletter_id}")
async def get_newsletter(newsletter_id: int) -> dict:
    return await service.get_newsletter(newsletter_id)


@router.post("/registerNewsletterEmail")
async def register_newsletter_email(payload: Any = Body(default=None)) -> dict:
    result = await service.register_lead(payload)
    if result.failed:
        raise RegistrationFailed(f"Error registering newsletter: {result.error}")
    return {"success": result.success}
