"""
Contact form relay.

Unlike comment notifications, the email is the whole point of this flow, so
a failed dispatch is reported to the caller as a failed submission.
"""

from __future__ import annotations

import logging
from typing import Any

from core import config, validation
from core.errors import DispatchFailed
from notifications.dispatcher import NotificationDispatcher, Template

from . import schemas

logger = logging.getLogger(__name__)

NO_SUBJECT = "[No subject]"
NO_MESSAGE = "[No message]"


def compose_fields(request: schemas.ContactRequest) -> dict[str, str]:
    return {
        "sender_name": request.display_name,
        "email": str(request.email),
        "subject": request.subject.strip() or NO_SUBJECT,
        "message": request.msg.strip() or NO_MESSAGE,
    }


async def send_contact_message(payload: Any, *, dispatcher: NotificationDispatcher) -> dict[str, str]:
    request = validation.parse(schemas.ContactRequest, payload)
    fields = compose_fields(request)

    result = await dispatcher.send(
        Template.CONTACT_REQUEST,
        config.operator_email(),
        fields["subject"],
        fields,
    )
    if not result.ok:
        logger.error("contact_dispatch_failed error=%s", result.error)
        raise DispatchFailed(f"Failed to send email: {result.error}")

    logger.info("contact_dispatched message_id=%s", result.message_id)
    return {"msg": f"{request.display_name} your contact message has been sent"}
