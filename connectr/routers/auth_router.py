from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from connectr.database import get_db
from connectr.auth import (
    register_user,
    authenticate_user,
    issue_tokens,
    refresh_tokens,
    revoke_refresh_token,
    get_current_user,
)
from connectr.core.errors import UnauthorizedError
from connectr.models.user import User
from connectr.schemas.auth_schema import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    TokenOut,
    RegisterOut,
)
from connectr.schemas.connection_schema import MessageOut
from connectr.schemas.user_schema import PublicProfile


router = APIRouter(prefix="/auth", tags=["Authentication"])


# ----------------- REGISTER ------------------

@router.post(
    "/register",
    response_model=RegisterOut,
    status_code=status.HTTP_201_CREATED,
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )

    # Registration logs the user straight in
    return {
        "user": PublicProfile.model_validate(user),
        "tokens": issue_tokens(db, user),
    }


# ------------------- LOGIN -------------------

@router.post("/login", response_model=TokenOut)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, email=payload.email, password=payload.password)

    if not user:
        raise UnauthorizedError("Incorrect email or password")

    return issue_tokens(db, user)


# ------------------ REFRESH ------------------

@router.post("/refresh", response_model=TokenOut)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    return refresh_tokens(db, payload.refresh_token)


# ------------------ LOGOUT -------------------

@router.post("/logout", response_model=MessageOut)
def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    revoke_refresh_token(db, current_user)
    return {"message": "Logged out"}


# -------------------- ME ---------------------

@router.get("/me", response_model=PublicProfile)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
