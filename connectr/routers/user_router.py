from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from connectr.database import get_db
from connectr.auth import get_current_user, validate_name
from connectr.core.user_directory import UserDirectory
from connectr.models.user import User
from connectr.schemas.user_schema import PublicProfile, UserUpdate


router = APIRouter(prefix="/users", tags=["Users"])


# --------------------------------------------------
# FIND PEOPLE
# --------------------------------------------------
@router.get("", response_model=list[PublicProfile])
def search_users(
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDirectory(db).search(search, exclude_user_id=current_user.id, limit=limit)


# --------------------------------------------------
# UPDATE MY PROFILE
# --------------------------------------------------
@router.patch("/me", response_model=PublicProfile)
def update_me(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.name is not None:
        current_user.name = validate_name(payload.name)

    if payload.profile_url is not None:
        current_user.profile_url = payload.profile_url or None

    db.commit()
    db.refresh(current_user)

    return current_user


# --------------------------------------------------
# PUBLIC PROFILE
# --------------------------------------------------
@router.get("/{user_id}", response_model=PublicProfile)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDirectory(db).get_public_profile(user_id)
