"""
Newsletter API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, EmailStr


class LeadRequest(BaseModel):
    email: EmailStr
