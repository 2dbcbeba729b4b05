from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

FRIENDSHIP_ACCEPTED = "accepted"


@dataclass
class Friendship:
    """Directed edge; an accepted friendship is stored as two of these."""

    id: str
    user_id: str
    friend_id: str
    created_at: datetime
    status: str = FRIENDSHIP_ACCEPTED
