from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"
REQUEST_REJECTED = "rejected"

RESOLVED_STATUSES = frozenset({REQUEST_ACCEPTED, REQUEST_REJECTED})


@dataclass(frozen=True)
class FriendRequest:
    id: str
    from_user_id: str
    to_user_id: str
    friend_code: str
    created_at: datetime
    status: str = REQUEST_PENDING

    def involves(self, user_a: str, user_b: str) -> bool:
        return {self.from_user_id, self.to_user_id} == {user_a, user_b}
