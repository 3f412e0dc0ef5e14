from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from turismo.core.deps import get_current_user
from turismo.db.session import get_db
from turismo.models.comments import Comment
from turismo.models.photos import UserPhoto
from turismo.models.users import Profile, User
from turismo.schemas.users import ProfileCreate, ProfileResponse, ProfileUpdate, UserSummaryResponse

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _to_profile_response(p: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=p.id,
        user_id=p.user_id,
        full_name=p.full_name,
        bio=p.bio,
        avatar_url=p.avatar_url,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def _owned_profile(db: Session, profile_id: str, current: User) -> Profile:
    profile = db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    if profile.user_id != current.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this profile")
    return profile


@router.get("", response_model=ProfileResponse)
def get_own_profile(current: User = Depends(get_current_user)) -> ProfileResponse:
    if not current.profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return _to_profile_response(current.profile)


@router.get("/{user_id}", response_model=UserSummaryResponse)
def get_user_summary(
    user_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserSummaryResponse:
    """Public summary of a user; ``me`` resolves to the caller."""
    if user_id == "me":
        user_id = current.id
    else:
        try:
            uuid.UUID(user_id)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user id")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    comment_count = db.scalar(select(func.count(Comment.id)).where(Comment.user_id == user.id)) or 0
    photo_count = db.scalar(select(func.count(UserPhoto.id)).where(UserPhoto.user_id == user.id)) or 0

    return UserSummaryResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        avatar_url=user.avatar_url,
        created_at=user.created_at,
        comment_count=int(comment_count),
        photo_count=int(photo_count),
    )


@router.post("", response_model=ProfileResponse, status_code=201)
def create_profile(
    payload: ProfileCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    if current.profile:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile already exists")

    profile = Profile(user_id=current.id, **payload.model_dump())
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return _to_profile_response(profile)


@router.put("/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: str,
    payload: ProfileUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    profile = _owned_profile(db, profile_id, current)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(profile, key, value)

    db.commit()
    db.refresh(profile)
    return _to_profile_response(profile)


@router.delete("/{profile_id}", status_code=204)
def delete_profile(
    profile_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    profile = _owned_profile(db, profile_id, current)
    db.delete(profile)
    db.commit()
