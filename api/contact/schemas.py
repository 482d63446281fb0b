"""
Contact form schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender_name: str = Field(default="", alias="senderName")
    email: EmailStr
    subject: str = Field(..., min_length=5)
    msg: str = Field(..., min_length=5)

    @property
    def display_name(self) -> str:
        return self.sender_name.strip() or str(self.email)
