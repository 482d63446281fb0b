"""
Blog business logic.

Comment submission runs strictly in order:
validate -> locate entry -> atomic append -> best-effort notification.
A failed notification is logged and never changes the returned entry.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import BackgroundTasks

from core import config, validation
from notifications.dispatcher import NotificationDispatcher, Template

from . import repository, schemas

logger = logging.getLogger(__name__)


async def list_entries() -> list[dict[str, Any]]:
    return await repository.list_entries()


async def get_entry(entry_id: str) -> dict[str, Any]:
    return await repository.find_entry(entry_id)


async def insert_entries(payload: Any) -> dict[str, Any]:
    request = validation.parse(schemas.InsertManyRequest, payload)
    documents = [entry.to_document() for entry in request.blog_entries]
    summary = await repository.insert_entries(documents)
    logger.info("blog_entries_inserted count=%s", summary["insertedCount"])
    return summary


async def notify_new_comment(
    dispatcher: NotificationDispatcher,
    *,
    entry_id: str,
    comment: dict[str, str],
) -> None:
    """
    Email the site operator about a new comment.

    This should never raise to the request path; we just log failures.
    """
    try:
        result = await dispatcher.send(
            Template.NEW_COMMENT,
            config.operator_email(),
            f"New Comment - {entry_id}",
            {
                "entry_id": entry_id,
                "user_name": comment["userName"],
                "comment_content": comment["commentContent"],
            },
        )
    except Exception:
        logger.exception("comment_notification_failed entry_id=%s", entry_id)
        return

    if not result.ok:
        logger.warning("comment_notification_failed entry_id=%s error=%s", entry_id, result.error)


async def submit_comment(
    entry_id: str,
    payload: Any,
    *,
    dispatcher: NotificationDispatcher,
    background_tasks: BackgroundTasks | None = None,
) -> dict[str, Any]:
    """
    Add a comment to a blog entry and return the updated entry.

    With `background_tasks`, the notification runs after the response is sent;
    without it, it is awaited here (its outcome is still ignored).
    """
    request = validation.parse(schemas.CommentRequest, payload)
    comment = request.to_document()

    await repository.find_entry(entry_id)
    updated = await repository.append_comment(entry_id, comment)
    logger.info(
        "comment_added entry_id=%s comment_count=%s",
        entry_id,
        len(updated.get("comments") or []),
    )

    if background_tasks is not None:
        background_tasks.add_task(notify_new_comment, dispatcher, entry_id=entry_id, comment=comment)
    else:
        await notify_new_comment(dispatcher, entry_id=entry_id, comment=comment)

    return updated
