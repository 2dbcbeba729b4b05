from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_store
from app.db.store import DirectoryStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(store: DirectoryStore = Depends(get_store)):
    return {"ok": True, **store.stats()}
