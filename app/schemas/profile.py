from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


class ProfileUser(CamelModel):
    id: str
    subject: str
    display_name: str
    profile_image: str | None = None
    friend_code: str
    created_at: datetime
    updated_at: datetime


class ProfileResponse(CamelModel):
    user: ProfileUser


class ProfileUpdateRequest(CamelModel):
    display_name: str | None = Field(default=None, max_length=120)
    profile_image: str | None = None

    @field_validator("display_name", "profile_image", mode="before")
    @classmethod
    def blank_is_absent(cls, v: object) -> object:
        # An empty value keeps the current field rather than clearing it.
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v
