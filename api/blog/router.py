"""
Blog API endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends

from notifications.dependencies import get_dispatcher
from notifications.dispatcher import NotificationDispatcher

from . import service

router = APIRouter()


@router.get("/blogEntries")
@router.get("/blogEntries/", include_in_schema=False)
async def list_blog_entries() -> list[dict]:
    return await service.list_entries()


@router.get("/blogEntries/{entry_id}")
async def get_blog_entry(entry_id: str) -> dict:
    return await service.get_entry(entry_id)


@router.post("/insertMany")
async def insert_many(payload: Any = Body(default=None)) -> dict:
    """
    Bulk-load blog entries: `{"blogEntries": [...]}`.
    """
    return await service.insert_entries(payload)


@router.post("/blogEntries/{entry_id}/add-comment")
async def add_comment(
    entry_id: str,
    background_tasks: BackgroundTasks,
    payload: Any = Body(default=None),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict:
    return await service.submit_comment(
        entry_id,
        payload,
        dispatcher=dispatcher,
        background_tasks=background_tasks,
    )
