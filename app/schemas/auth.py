from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from app.schemas.base import CamelModel


class ZKProof(BaseModel):
    # Field names match what the World ID widget emits.
    model_config = ConfigDict(extra="allow")

    merkle_root: str | None = None
    nullifier_hash: str | None = None
    proof: str | None = None
    verification_level: str | None = None
    signal_hash: str | None = None


class LoginRequest(CamelModel):
    # Optional here so missing fields come back as 400, not 422.
    app_id: str | None = None
    zk_proof: ZKProof | None = None
    action_id: str | None = None


class UserSummary(CamelModel):
    id: str
    subject: str
    display_name: str
    friend_code: str


class LoginResponse(CamelModel):
    success: bool
    session_key: str
    valid_until: int  # epoch milliseconds
    user: UserSummary


class LoginInfoResponse(BaseModel):
    message: str
    endpoints: dict[str, str]


class SessionVerifyRequest(CamelModel):
    session_key: str | None = None


class SessionVerifyResponse(CamelModel):
    success: bool
    user: UserSummary


class LogoutResponse(BaseModel):
    ok: bool
