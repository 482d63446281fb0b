"""
Contact form API endpoint.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from notifications.dependencies import get_dispatcher
from notifications.dispatcher import NotificationDispatcher

from . import service

router = APIRouter()


@router.post("/sendMail")
async def send_mail(
    payload: Any = Body(default=None),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict:
    return await service.send_contact_message(payload, dispatcher=dispatcher)
