# mafia_nights/api/v1/profiles.py

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_db_dep
from ...models.auth import User
from ...models.profile import Profile
from ...schemas.profile import ProfileOut, ProfileUpdate

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{user_id}", response_model=ProfileOut)
def get_profile(
    user_id: str,
    db: Session = Depends(get_db_dep),
):
    profile = db.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.patch("/{user_id}", response_model=ProfileOut)
def update_profile(
    user_id: str,
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    """自分のプロフィールだけ更新できる（指定された項目のみ）"""
    if user.id != user_id:
        raise HTTPException(status_code=403, detail="Cannot update another user's profile")

    profile = db.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field, value.strip() if isinstance(value, str) else value)
    profile.updated_at = datetime.utcnow()

    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile
