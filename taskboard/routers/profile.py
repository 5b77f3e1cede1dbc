from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from uuid import UUID

from taskboard.db.session import get_session
from taskboard.dependencies.auth import get_current_user
from taskboard.models.profile import Profile
from taskboard.models.user import User
from taskboard.schemas.auth import ProfileRead

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/{user_id}", response_model=ProfileRead)
def get_profile(
    user_id: UUID,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    # 본인 프로필만
    if user_id != user.user_id:
        raise HTTPException(status_code=404, detail="profile not found")
    profile = db.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="profile not found")
    return ProfileRead(id=profile.id, nickname=profile.nickname, email=profile.email)
