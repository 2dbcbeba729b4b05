from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.api.deps import get_current_session, get_store
from app.api.http_errors import value_error
from app.api.presenters.users import user_summary
from app.core.config import settings
from app.core.logging import token_preview
from app.core.security import parse_bearer_token
from app.db.store import DirectoryStore, FriendCodeExhaustedError
from app.models.session import Session
from app.schemas.auth import (
    LoginInfoResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    SessionVerifyRequest,
    SessionVerifyResponse,
)
from app.services.identity import IdentityError, IdentityRejected, missing_proof_fields, verify_identity

router = APIRouter(prefix="/api/v1", tags=["auth"])

logger = logging.getLogger(__name__)


def _valid_until_ms(store: DirectoryStore, token: str) -> int:
    session = store.get_session(token)
    if session is None:
        raise HTTPException(status_code=500, detail="Session could not be created")
    return int(session.expires_at.timestamp() * 1000)


@router.get("/login", response_model=LoginInfoResponse)
async def login_info():
    return LoginInfoResponse(
        message="World ID login API",
        endpoints={"POST": "Verify a World ID proof and receive a session key"},
    )


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, store: DirectoryStore = Depends(get_store)):
    app_id = (payload.app_id or "").strip()
    if not app_id or payload.zk_proof is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    zk_proof = payload.zk_proof.model_dump()
    missing = missing_proof_fields(zk_proof)
    if "nullifier_hash" in missing or (settings.verify_proofs_value() and missing):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing proof fields: {', '.join(missing)}",
        )

    logger.info("Verifying World ID proof app_id=%s", app_id)
    try:
        identity = await verify_identity(app_id=app_id, zk_proof=zk_proof, action_id=payload.action_id)
    except IdentityRejected as e:
        raise value_error(
            e,
            phrase_statuses={"app_id": 400},
            detail_overrides={"app_id": "Proof was issued for a different app"},
            default_status=401,
            default_detail="Identity proof rejected",
        ) from e
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Identity provider unavailable") from e

    try:
        user, created = store.get_or_create_user(identity.subject)
    except FriendCodeExhaustedError as e:
        logger.error("Friend code space exhausted")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Unable to register user") from e

    token = store.create_session(user.id)
    logger.info(
        "Login succeeded user_id=%s new_user=%s level=%s token=%s",
        user.id,
        created,
        identity.verification_level,
        token_preview(token),
    )

    return LoginResponse(
        success=True,
        session_key=token,
        valid_until=_valid_until_ms(store, token),
        user=user_summary(user),
    )


@router.post("/session/verify", response_model=SessionVerifyResponse)
async def verify_session(
    payload: SessionVerifyRequest | None = None,
    authorization: str | None = Header(default=None),
    store: DirectoryStore = Depends(get_store),
):
    token = (payload.session_key if payload else None) or parse_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Session key required")

    session = store.get_session(token)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

    user = store.get_user_by_id(session.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return SessionVerifyResponse(success=True, user=user_summary(user))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    session: Session = Depends(get_current_session),
    store: DirectoryStore = Depends(get_store),
):
    store.delete_session(session.token)
    logger.info("Logout user_id=%s token=%s", session.user_id, token_preview(session.token))
    return LogoutResponse(ok=True)
