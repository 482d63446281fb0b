"""
Bot-check API endpoint.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body

from core.errors import VerificationFailed

from . import service

router = APIRouter()


@router.post("/verifyCaptcha")
async def verify_captcha(payload: Any = Body(default=None)) -> dict:
    result = await service.verify(payload)
    if result.failed:
        raise VerificationFailed(f"Error verifying captcha: {result.error}")
    return {"success": result.success}
