from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime, timezone

from connectr.schemas.user_schema import PublicProfile


# --------------------------------------------------
# CREATE CONNECTION
# --------------------------------------------------
class ConnectionCreate(BaseModel):
    friend_id: str


# --------------------------------------------------
# ACCEPT / BLOCK
# --------------------------------------------------
class ConnectionStatusUpdate(BaseModel):
    # Checked by the service so bad values get the domain error
    status: str


# --------------------------------------------------
# CONNECTION OUT (friend = the other party)
# --------------------------------------------------
class ConnectionOut(BaseModel):
    id: int
    user_id: str
    friend_id: str
    status: str
    created_at: datetime
    updated_at: datetime
    friend: PublicProfile

    class Config:
        from_attributes = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands timestamps back without an offset; they are stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# --------------------------------------------------
# RELATIONSHIP WITH ANOTHER USER
# --------------------------------------------------
class ConnectionStatusOut(BaseModel):
    status: str
    connection_id: Optional[int] = None


class MessageOut(BaseModel):
    message: str
