from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

_REQUIRED_PROOF_FIELDS = ("merkle_root", "nullifier_hash", "proof", "verification_level")


class IdentityError(RuntimeError):
    """Proof could not be checked at all (provider unreachable or misbehaving)."""


class IdentityRejected(ValueError):
    """Provider checked the proof and refused it."""


@dataclass
class VerifiedIdentity:
    subject: str
    verification_level: str | None


def _clean(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    return normalized or None


def _provider_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"status {resp.status_code}"
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("code")
        if isinstance(detail, str) and detail:
            return detail
    return f"status {resp.status_code}"


def missing_proof_fields(zk_proof: dict[str, Any]) -> list[str]:
    return [name for name in _REQUIRED_PROOF_FIELDS if not _clean(zk_proof.get(name))]


async def verify_identity(
    *,
    app_id: str,
    zk_proof: dict[str, Any],
    action_id: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> VerifiedIdentity:
    """Resolve a World ID proof to the stable subject used to key users.

    With ``WORLDID_VERIFY_PROOFS`` off (the local/test default) the proof's
    ``nullifier_hash`` is trusted as-is.
    """
    nullifier_hash = _clean(zk_proof.get("nullifier_hash"))
    if not nullifier_hash:
        raise IdentityRejected("nullifier_hash missing")

    verification_level = _clean(zk_proof.get("verification_level"))

    if not settings.verify_proofs_value():
        return VerifiedIdentity(subject=nullifier_hash, verification_level=verification_level)

    configured_app_id = _clean(settings.worldid_app_id)
    if configured_app_id and configured_app_id != app_id:
        raise IdentityRejected("app_id mismatch")

    payload: dict[str, Any] = {
        "nullifier_hash": nullifier_hash,
        "merkle_root": _clean(zk_proof.get("merkle_root")),
        "proof": _clean(zk_proof.get("proof")),
        "verification_level": verification_level,
        "action": _clean(action_id) or settings.worldid_action,
    }
    # The widget hashes the signal client-side; forward it only when present.
    signal_hash = _clean(zk_proof.get("signal_hash"))
    if signal_hash:
        payload["signal_hash"] = signal_hash

    correlation_id = str(uuid.uuid4())
    url = f"{settings.worldid_verify_url}/{app_id}"
    try:
        async with httpx.AsyncClient(timeout=settings.worldid_timeout_seconds, transport=transport) as client:
            resp = await client.post(url, json=payload)
    except httpx.RequestError as exc:
        logger.warning("World ID request error correlation_id=%s", correlation_id, exc_info=exc)
        raise IdentityError(f"World ID request error (correlation_id={correlation_id})") from exc

    if resp.status_code >= 500:
        logger.warning("World ID transient error %s correlation_id=%s", resp.status_code, correlation_id)
        raise IdentityError(f"World ID error {resp.status_code} (correlation_id={correlation_id})")

    if resp.status_code >= 400:
        message = _provider_message(resp)
        logger.info("World ID rejected proof: %s correlation_id=%s", message, correlation_id)
        raise IdentityRejected(message)

    return VerifiedIdentity(subject=nullifier_hash, verification_level=verification_level)
