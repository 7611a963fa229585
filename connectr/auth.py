import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import bcrypt

from connectr.config import settings
from connectr.core.errors import (
    ConflictError,
    InvalidOperationError,
    UnauthorizedError,
)
from connectr.database import get_db
from connectr.models.user import User

logger = logging.getLogger(__name__)


MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 20
EMAIL_TAKEN = "Email already registered, try logging in"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


# ============================================================
# PASSWORD HELPERS
# ============================================================

def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed.encode())


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidOperationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidOperationError("Name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidOperationError(
            f"Name can not be more than {MAX_NAME_LENGTH} characters"
        )
    return name


# ============================================================
# REGISTER USER
# ============================================================

def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def register_user(db: Session, name: str, email: str, password: str) -> User:
    name = validate_name(name)
    validate_password(password)

    if find_user_by_email(db, email):
        raise ConflictError(EMAIL_TAKEN)

    user = User(
        id=str(uuid4()),
        name=name,
        email=email,
        hashed_password=hash_password(password),
    )

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Same email registered between the lookup and the insert
        db.rollback()
        raise ConflictError(EMAIL_TAKEN)
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user


# ============================================================
# LOGIN
# ============================================================

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = find_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ============================================================
# TOKEN CREATION
# ============================================================

def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )

    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, token_id: str) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES
    )

    to_encode.update({"exp": expire, "type": "refresh", "jti": token_id})

    return jwt.encode(
        to_encode, settings.REFRESH_SECRET_KEY, algorithm=settings.ALGORITHM
    )


def issue_tokens(db: Session, user: User) -> dict:
    """
    New access + refresh pair. Only the latest refresh token stays valid.
    """
    token_id = str(uuid4())
    claims = {"sub": user.id}

    user.refresh_token_id = token_id
    db.commit()

    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims, token_id),
        "token_type": "bearer",
        "user_id": user.id,
        "user_name": user.name,
    }


def refresh_tokens(db: Session, refresh_token: str) -> dict:
    try:
        payload = jwt.decode(
            refresh_token,
            settings.REFRESH_SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        raise UnauthorizedError("Your login session has timed out. Login again")

    if payload.get("type") != "refresh":
        raise UnauthorizedError("Invalid refresh token")

    user = db.query(User).filter(User.id == payload.get("sub")).first()
    if not user or not user.refresh_token_id:
        raise UnauthorizedError("Access denied")

    # Rotated or logged out
    if payload.get("jti") != user.refresh_token_id:
        logger.warning("Stale refresh token presented for user %s", user.id)
        raise UnauthorizedError("Access denied")

    return issue_tokens(db, user)


def revoke_refresh_token(db: Session, user: User) -> None:
    user.refresh_token_id = None
    db.commit()


# ============================================================
# GET CURRENT USER
# ============================================================

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise UnauthorizedError("Invalid token")

    user_id: Optional[str] = payload.get("sub")
    if user_id is None or payload.get("type") != "access":
        raise UnauthorizedError("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()

    # Token outlived its user (account removed or DB wiped)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found")

    return user
