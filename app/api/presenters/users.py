from __future__ import annotations

from app.models.friend_request import FriendRequest
from app.models.user import User
from app.schemas.auth import UserSummary
from app.schemas.friends import FriendListItem, IncomingFriendRequest, RequestSender, SentFriendRequest
from app.schemas.profile import ProfileUser
from app.services.friends import IncomingRequest


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        subject=user.subject,
        display_name=user.display_name,
        friend_code=user.friend_code,
    )


def profile_user(user: User) -> ProfileUser:
    return ProfileUser(
        id=user.id,
        subject=user.subject,
        display_name=user.display_name,
        profile_image=user.profile_image,
        friend_code=user.friend_code,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def friend_list_item(user: User) -> FriendListItem:
    return FriendListItem(
        id=user.id,
        display_name=user.display_name,
        friend_code=user.friend_code,
        profile_image=user.profile_image,
    )


def incoming_friend_request(item: IncomingRequest) -> IncomingFriendRequest:
    request = item.request
    sender = item.from_user
    return IncomingFriendRequest(
        id=request.id,
        from_user_id=request.from_user_id,
        to_user_id=request.to_user_id,
        friend_code=request.friend_code,
        status=request.status,
        created_at=request.created_at,
        # Sender may have vanished; the request is still listed.
        from_user=(
            RequestSender(display_name=sender.display_name, friend_code=sender.friend_code)
            if sender is not None
            else None
        ),
    )


def sent_friend_request(request: FriendRequest) -> SentFriendRequest:
    return SentFriendRequest(
        id=request.id,
        to_user_id=request.to_user_id,
        status=request.status,
        created_at=request.created_at,
    )
