from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_current_session, get_store
from app.api.http_errors import value_error
from app.api.presenters.users import friend_list_item, incoming_friend_request, sent_friend_request
from app.core.security import normalize_friend_code
from app.db.store import DirectoryStore
from app.models.session import Session
from app.schemas.friends import (
    FriendsOverviewResponse,
    ResolveFriendRequest,
    ResolveFriendRequestResponse,
    SendFriendRequest,
    SendFriendRequestResponse,
)
from app.services.friends import list_friends, list_incoming_requests, resolve_friend_request, send_friend_request

router = APIRouter(prefix="/friends", tags=["friends"])

_ACTION_PAST = {"accept": "accepted", "reject": "rejected"}


@router.get("", response_model=FriendsOverviewResponse)
async def get_friends(
    session: Session = Depends(get_current_session),
    store: DirectoryStore = Depends(get_store),
):
    friends = list_friends(store, session.user_id)
    requests = list_incoming_requests(store, session.user_id)
    return FriendsOverviewResponse(
        friends=[friend_list_item(f) for f in friends],
        requests=[incoming_friend_request(r) for r in requests],
    )


@router.post("", response_model=SendFriendRequestResponse)
async def send_request(
    payload: SendFriendRequest,
    session: Session = Depends(get_current_session),
    store: DirectoryStore = Depends(get_store),
):
    friend_code = normalize_friend_code(payload.friend_code)
    if not friend_code:
        raise HTTPException(status_code=400, detail="Friend code is required")

    try:
        request = send_friend_request(store, session.user_id, friend_code)
    except ValueError as e:
        raise value_error(
            e,
            code_statuses={
                "invalid_code": 404,
                "cannot_friend_self": 400,
                "already_friends": 409,
            },
            detail_overrides={
                "invalid_code": "Invalid friend code",
                "cannot_friend_self": "You cannot friend yourself",
                "already_friends": "You are already friends",
            },
            default_detail="Could not send friend request",
        ) from e

    return SendFriendRequestResponse(
        message="Friend request sent successfully",
        request=sent_friend_request(request),
    )


@router.put("", response_model=ResolveFriendRequestResponse)
async def resolve_request(
    payload: ResolveFriendRequest,
    session: Session = Depends(get_current_session),
    store: DirectoryStore = Depends(get_store),
):
    if not payload.request_id or payload.action not in _ACTION_PAST:
        raise HTTPException(
            status_code=400,
            detail="Request ID and valid action (accept/reject) are required",
        )

    try:
        resolve_friend_request(store, session.user_id, payload.request_id, payload.action)
    except ValueError as e:
        raise value_error(
            e,
            code_statuses={
                "not_found": 404,
                "already_resolved": 409,
                "invalid_action": 400,
            },
            detail_overrides={
                "not_found": "Friend request not found",
                "already_resolved": "Friend request already resolved",
                "invalid_action": "Action must be accept or reject",
            },
            default_detail="Could not update friend request",
        ) from e

    return ResolveFriendRequestResponse(message=f"Friend request {_ACTION_PAST[payload.action]} successfully")
