"""
Blog entry persistence.

Each function borrows one pooled connection through `db.session()` and
works on the `blogEntries` collection only.
"""

from __future__ import annotations

from typing import Any

from core import db
from core.errors import NotFound

COLLECTION = "blogEntries"
KEY_FIELD = "entryID"


def _not_found(entry_id: str) -> NotFound:
    return NotFound(f"Blog entry '{entry_id}' not found.")


async def list_entries() -> list[dict[str, Any]]:
    async with db.session(COLLECTION, KEY_FIELD) as collection:
        return await collection.find_all()


async def find_entry(entry_id: str) -> dict[str, Any]:
    async with db.session(COLLECTION, KEY_FIELD) as collection:
        entry = await collection.find_one(entry_id)
    if entry is None:
        raise _not_found(entry_id)
    return entry


async def insert_entries(entries: list[dict[str, Any]]) -> dict[str, Any]:
    async with db.session(COLLECTION, KEY_FIELD) as collection:
        inserted_ids = await collection.insert_many(entries)
    return {
        "acknowledged": True,
        "insertedCount": len(inserted_ids),
        "insertedIds": inserted_ids,
    }


async def append_comment(entry_id: str, comment: dict[str, Any]) -> dict[str, Any]:
    """
    Atomically push `comment` onto the entry's `comments` array.
    """
    async with db.session(COLLECTION, KEY_FIELD) as collection:
        updated = await collection.push(entry_id, "comments", comment)
    if updated is None:
        raise _not_found(entry_id)
    return updated
