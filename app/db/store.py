from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from app.core.logging import token_preview
from app.core.security import default_display_name, make_friend_code, make_session_token
from app.models.friend_request import REQUEST_ACCEPTED, REQUEST_PENDING, RESOLVED_STATUSES, FriendRequest
from app.models.friendship import FRIENDSHIP_ACCEPTED, Friendship
from app.models.session import Session
from app.models.user import User

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FriendCodeExhaustedError(RuntimeError):
    pass


class DirectoryStore:
    """In-process store for users, sessions and the friend graph.

    Every public method runs under one lock, so compound operations such as
    "check for an existing request, then create one" are atomic with respect
    to concurrent handlers. Absence and rejected transitions are reported as
    ``None`` / ``False``; callers map those to HTTP errors.

    Contents live for the lifetime of the process only.
    """

    def __init__(
        self,
        *,
        session_ttl: timedelta = timedelta(hours=24),
        friend_code_max_attempts: int = 1000,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_ttl = session_ttl
        self._friend_code_max_attempts = friend_code_max_attempts
        self._clock = clock
        self._lock = threading.RLock()

        self._users: dict[str, User] = {}
        self._sessions: dict[str, Session] = {}
        self._friendships: dict[str, Friendship] = {}
        self._friend_requests: dict[str, FriendRequest] = {}
        self._friend_code_to_user_id: dict[str, str] = {}

    # ─────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────

    def create_user(self, subject: str) -> User:
        with self._lock:
            now = self._clock()
            user_id = self._new_id(self._users)
            user = User(
                id=user_id,
                subject=subject,
                display_name=default_display_name(),
                friend_code=self._generate_friend_code(),
                created_at=now,
                updated_at=now,
            )
            self._users[user_id] = user
            self._friend_code_to_user_id[user.friend_code] = user_id

        logger.info("User created user_id=%s friend_code=%s", user.id, user.friend_code)
        return user

    def get_or_create_user(self, subject: str) -> tuple[User, bool]:
        with self._lock:
            user = self.get_user_by_subject(subject)
            if user is not None:
                return user, False
            return self.create_user(subject), True

    def get_user_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_subject(self, subject: str) -> User | None:
        with self._lock:
            for user in self._users.values():
                if user.subject == subject:
                    return user
            return None

    def get_user_by_friend_code(self, friend_code: str) -> User | None:
        with self._lock:
            user_id = self._friend_code_to_user_id.get(friend_code)
            return self._users.get(user_id) if user_id else None

    def update_user(
        self,
        user_id: str,
        *,
        display_name: str | None = None,
        profile_image: str | None = None,
    ) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None

            changes: dict[str, object] = {"updated_at": self._clock()}
            if display_name is not None:
                changes["display_name"] = display_name
            if profile_image is not None:
                changes["profile_image"] = profile_image

            updated = replace(user, **changes)
            self._users[user_id] = updated
            return updated

    # ─────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────

    def create_session(self, user_id: str) -> str:
        with self._lock:
            token = make_session_token()
            while token in self._sessions:
                token = make_session_token()
            session = Session(token=token, user_id=user_id, expires_at=self._clock() + self._session_ttl)
            self._sessions[token] = session
            total = len(self._sessions)

        logger.info(
            "Session created token=%s user_id=%s expires_at=%s total_sessions=%d",
            token_preview(token),
            user_id,
            session.expires_at.isoformat(),
            total,
        )
        return token

    def get_session(self, token: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                logger.debug("Session not found token=%s", token_preview(token))
                return None

            if session.is_expired(self._clock()):
                del self._sessions[token]
                logger.info("Session expired token=%s user_id=%s", token_preview(token), session.user_id)
                return None

            return session

    def delete_session(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    # ─────────────────────────────────────────────
    # Friends
    # ─────────────────────────────────────────────

    def create_friend_request(self, from_user_id: str, friend_code: str) -> FriendRequest | None:
        with self._lock:
            to_user = self.get_user_by_friend_code(friend_code)
            if to_user is None or to_user.id == from_user_id:
                return None

            if self._find_friendship(from_user_id, to_user.id) is not None:
                return None

            # A prior request between the pair, in either direction and in any
            # status, is returned as-is.
            existing = self._find_friend_request(from_user_id, to_user.id)
            if existing is not None:
                return existing

            request = FriendRequest(
                id=self._new_id(self._friend_requests),
                from_user_id=from_user_id,
                to_user_id=to_user.id,
                friend_code=friend_code,
                created_at=self._clock(),
            )
            self._friend_requests[request.id] = request

        logger.info(
            "Friend request created request_id=%s from=%s to=%s",
            request.id,
            request.from_user_id,
            request.to_user_id,
        )
        return request

    def get_friend_request(self, request_id: str) -> FriendRequest | None:
        with self._lock:
            return self._friend_requests.get(request_id)

    def get_friend_requests(self, user_id: str) -> list[FriendRequest]:
        with self._lock:
            return [
                request
                for request in self._friend_requests.values()
                if request.to_user_id == user_id and request.status == REQUEST_PENDING
            ]

    def update_friend_request(self, request_id: str, status: str) -> bool:
        if status not in RESOLVED_STATUSES:
            raise ValueError(f"unsupported friend request status: {status!r}")

        with self._lock:
            request = self._friend_requests.get(request_id)
            if request is None:
                return False
            if request.status != REQUEST_PENDING:
                # Terminal states never transition again.
                return False

            updated = replace(request, status=status)
            self._friend_requests[request_id] = updated
            if status == REQUEST_ACCEPTED:
                self._create_friendship(updated.from_user_id, updated.to_user_id)

        logger.info("Friend request resolved request_id=%s status=%s", request_id, status)
        return True

    def get_friends(self, user_id: str) -> list[User]:
        with self._lock:
            friends: list[User] = []
            for friendship in self._friendships.values():
                if friendship.user_id != user_id or friendship.status != FRIENDSHIP_ACCEPTED:
                    continue
                friend = self._users.get(friendship.friend_id)
                if friend is not None:
                    friends.append(friend)
            return friends

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "users": len(self._users),
                "sessions": len(self._sessions),
                "friendships": len(self._friendships),
                "friend_requests": len(self._friend_requests),
            }

    # ─────────────────────────────────────────────
    # Internals (caller holds the lock)
    # ─────────────────────────────────────────────

    def _create_friendship(self, user_a: str, user_b: str) -> None:
        now = self._clock()
        for owner, friend in ((user_a, user_b), (user_b, user_a)):
            if self._find_directed_friendship(owner, friend) is not None:
                continue
            row = Friendship(
                id=self._new_id(self._friendships),
                user_id=owner,
                friend_id=friend,
                created_at=now,
            )
            self._friendships[row.id] = row

    def _find_directed_friendship(self, owner: str, friend: str) -> Friendship | None:
        for row in self._friendships.values():
            if row.user_id == owner and row.friend_id == friend:
                return row
        return None

    def _find_friendship(self, user_a: str, user_b: str) -> Friendship | None:
        return self._find_directed_friendship(user_a, user_b) or self._find_directed_friendship(user_b, user_a)

    def _find_friend_request(self, user_a: str, user_b: str) -> FriendRequest | None:
        for request in self._friend_requests.values():
            if request.involves(user_a, user_b):
                return request
        return None

    def _generate_friend_code(self) -> str:
        for _ in range(self._friend_code_max_attempts):
            code = make_friend_code()
            if code not in self._friend_code_to_user_id:
                return code

        raise FriendCodeExhaustedError("Failed to generate unique friend code")

    @staticmethod
    def _new_id(existing: dict) -> str:
        while True:
            value = str(uuid.uuid4())
            if value not in existing:
                return value
