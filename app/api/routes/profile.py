from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_current_user, get_store
from app.api.presenters.users import profile_user
from app.db.store import DirectoryStore
from app.models.user import User
from app.schemas.profile import ProfileResponse, ProfileUpdateRequest

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return ProfileResponse(user=profile_user(user))


@router.put("", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    store: DirectoryStore = Depends(get_store),
):
    updated = store.update_user(
        user.id,
        display_name=payload.display_name,
        profile_image=payload.profile_image,
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return ProfileResponse(user=profile_user(updated))
