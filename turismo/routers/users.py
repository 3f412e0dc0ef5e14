from __future__ import annotations

from fastapi import APIRouter, Depends

from turismo.core.deps import get_current_user
from turismo.models.users import User
from turismo.schemas.users import AccountResponse

router = APIRouter(tags=["users"])


def to_account_response(user: User) -> AccountResponse:
    profile = user.profile
    return AccountResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        is_verified=user.is_verified,
        avatar_url=user.avatar_url,
        created_at=user.created_at,
        full_name=profile.full_name if profile else None,
        bio=profile.bio if profile else None,
    )


@router.get("/me", response_model=AccountResponse)
def me(current: User = Depends(get_current_user)) -> AccountResponse:
    return to_account_response(current)
