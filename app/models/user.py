from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class User:
    id: str
    subject: str
    display_name: str
    friend_code: str
    created_at: datetime
    updated_at: datetime

    profile_image: str | None = field(default=None)
