from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, HTTPException
from fastapi.params import Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.db.db import get_session
from app.models.profile import Profile
from app.utils.auth_helper import get_current_profile


router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=80)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    location: Optional[str] = Field(default=None, max_length=100)
    pdga_number: Optional[str] = Field(default=None, max_length=10)
    show_in_directory: Optional[bool] = None


@router.get("/me")
async def get_my_profile(
    profile: Profile = Depends(get_current_profile),
):
    return profile


@router.patch("/me")
async def update_my_profile(
    payload: ProfileUpdateRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    updates = payload.model_dump(exclude_unset=True)

    if not updates:
        raise HTTPException(status_code=400, detail="Nothing to update")

    for field, value in updates.items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(profile, field, value)

    profile.updated_at = datetime.now(timezone.utc)

    session.add(profile)
    session.commit()
    session.refresh(profile)

    return profile
