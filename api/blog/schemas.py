"""
Blog API schemas (request bodies).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CommentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(..., alias="userName", min_length=3)
    comment_content: str = Field(..., alias="commentContent", min_length=5)

    def to_document(self) -> dict[str, str]:
        return {"userName": self.user_name, "commentContent": self.comment_content}


class BlogEntryIn(BaseModel):
    # Content fields (title, body, ...) and existing comments are opaque and
    # stored as given; only new comments go through CommentRequest.
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    entry_id: str = Field(..., alias="entryID", min_length=1)
    comments: list[dict[str, Any]] = Field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class InsertManyRequest(BaseModel):
    blog_entries: list[BlogEntryIn] = Field(..., alias="blogEntries", min_length=1)
