"""
Newsletter persistence (`newsletters` collection).
"""

from __future__ import annotations

from typing import Any

from core import db
from core.errors import NotFound

COLLECTION = "newsletters"
KEY_FIELD = "newsletterID"


async def count_newsletters() -> int:
    async with db.session(COLLECTION, KEY_FIELD) as collection:
        return await collection.count()


async def find_newsletter(newsletter_id: int) -> dict[str, Any]:
    async with db.session(COLLECTION, KEY_FIELD) as collection:
        newsletter = await collection.find_one(newsletter_id)
    if newsletter is None:
        raise NotFound(f"Newsletter {newsletter_id} not found.")
    return newsletter
