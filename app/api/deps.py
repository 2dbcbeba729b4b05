from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from app.core.security import parse_bearer_token
from app.db.store import DirectoryStore
from app.models.session import Session
from app.models.user import User


def get_store(request: Request) -> DirectoryStore:
    return request.app.state.store


def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    token = parse_bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def get_current_session(
    token: str = Depends(get_bearer_token),
    store: DirectoryStore = Depends(get_store),
) -> Session:
    session = store.get_session(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


def get_current_user(
    session: Session = Depends(get_current_session),
    store: DirectoryStore = Depends(get_store),
) -> User:
    user = store.get_user_by_id(session.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
