from __future__ import annotations

from dataclasses import dataclass

from app.db.store import DirectoryStore
from app.models.friend_request import REQUEST_ACCEPTED, REQUEST_PENDING, REQUEST_REJECTED, FriendRequest
from app.models.user import User

_ACTION_STATUSES = {
    "accept": REQUEST_ACCEPTED,
    "reject": REQUEST_REJECTED,
}


@dataclass
class IncomingRequest:
    request: FriendRequest
    from_user: User | None


def send_friend_request(store: DirectoryStore, current_user_id: str, friend_code: str) -> FriendRequest:
    target = store.get_user_by_friend_code(friend_code)
    if target is None:
        raise ValueError("invalid_code")

    if target.id == current_user_id:
        raise ValueError("cannot_friend_self")

    request = store.create_friend_request(current_user_id, friend_code)
    if request is None:
        # Code resolved and is not ours, so the store refused on the friendship check.
        raise ValueError("already_friends")
    return request


def resolve_friend_request(store: DirectoryStore, current_user_id: str, request_id: str, action: str) -> str:
    status = _ACTION_STATUSES.get(action)
    if status is None:
        raise ValueError("invalid_action")

    request = store.get_friend_request(request_id)
    # Only the recipient may resolve; anyone else sees it as missing.
    if request is None or request.to_user_id != current_user_id:
        raise ValueError("not_found")

    if not store.update_friend_request(request_id, status):
        current = store.get_friend_request(request_id)
        if current is not None and current.status != REQUEST_PENDING:
            raise ValueError("already_resolved")
        raise ValueError("not_found")
    return status


def list_friends(store: DirectoryStore, current_user_id: str) -> list[User]:
    return sorted(store.get_friends(current_user_id), key=lambda u: u.display_name.lower())


def list_incoming_requests(store: DirectoryStore, current_user_id: str) -> list[IncomingRequest]:
    return [
        IncomingRequest(request=request, from_user=store.get_user_by_id(request.from_user_id))
        for request in store.get_friend_requests(current_user_id)
    ]
