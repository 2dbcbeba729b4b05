from __future__ import annotations

import secrets
import string

FRIEND_CODE_LENGTH = 6
FRIEND_CODE_ALPHABET = string.digits + string.ascii_uppercase

_SESSION_TOKEN_BYTES = 32
_BEARER_PREFIX = "bearer "


def make_session_token() -> str:
    return secrets.token_urlsafe(_SESSION_TOKEN_BYTES)


def make_friend_code(length: int = FRIEND_CODE_LENGTH) -> str:
    return "".join(secrets.choice(FRIEND_CODE_ALPHABET) for _ in range(length))


def default_display_name() -> str:
    return f"User{secrets.randbelow(10000)}"


def normalize_friend_code(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().upper()
    return cleaned or None


def parse_bearer_token(authorization: str | None) -> str | None:
    if not isinstance(authorization, str):
        return None
    value = authorization.strip()
    if value[: len(_BEARER_PREFIX)].lower() != _BEARER_PREFIX:
        return None
    token = value[len(_BEARER_PREFIX):].strip()
    return token or None
