from __future__ import annotations

from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel


class FriendListItem(CamelModel):
    id: str
    display_name: str
    friend_code: str
    profile_image: str | None = None


class RequestSender(CamelModel):
    display_name: str
    friend_code: str


class IncomingFriendRequest(CamelModel):
    id: str
    from_user_id: str
    to_user_id: str
    friend_code: str
    status: str
    created_at: datetime
    from_user: RequestSender | None = None


class FriendsOverviewResponse(CamelModel):
    friends: list[FriendListItem] = Field(default_factory=list)
    requests: list[IncomingFriendRequest] = Field(default_factory=list)


class SendFriendRequest(CamelModel):
    friend_code: str | None = None


class SentFriendRequest(CamelModel):
    id: str
    to_user_id: str
    status: str
    created_at: datetime


class SendFriendRequestResponse(CamelModel):
    message: str
    request: SentFriendRequest


class ResolveFriendRequest(CamelModel):
    request_id: str | None = None
    action: str | None = None


class ResolveFriendRequestResponse(CamelModel):
    message: str
