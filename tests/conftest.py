import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing app.settings/app.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
os.environ.setdefault("WORLDID_VERIFY_PROOFS", "false")

from app.main import app as fastapi_app  # noqa: E402
from app.db.store import DirectoryStore  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return DirectoryStore(session_ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
async def client(store):
    fastapi_app.state.store = store

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# --- Small helpers ---

def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


def proof_payload(nullifier_hash: str, *, app_id: str = "app_test_123") -> dict:
    return {
        "appId": app_id,
        "zkProof": {
            "merkle_root": "0x1f38b57f3bdf96f05ea62fa68814871bf0ca8ce4dbe073d8497d5a6b0a53e5e0",
            "nullifier_hash": nullifier_hash,
            "proof": "0x" + "ab" * 32,
            "verification_level": "orb",
        },
    }


@pytest.fixture
def login_helper(unique_str):
    async def _login(client: AsyncClient, *, subject: str | None = None):
        subject = subject or unique_str("0xnullifier")
        r = await client.post("/api/v1/login", json=proof_payload(subject))
        assert r.status_code == 200, r.text
        data = r.json()
        assert data["success"] is True
        return {
            "token": data["sessionKey"],
            "subject": subject,
            "valid_until": data["validUntil"],
            **data["user"],
        }

    return _login


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer


@pytest.fixture
def proof_factory():
    return proof_payload
