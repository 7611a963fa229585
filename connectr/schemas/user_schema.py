from pydantic import BaseModel
from typing import Optional


# --------------------------------------------------
# PUBLIC PROFILE (used in connections + search)
# --------------------------------------------------
class PublicProfile(BaseModel):
    id: str
    name: str
    email: str
    profile_url: Optional[str] = None

    class Config:
        from_attributes = True


# --------------------------------------------------
# UPDATE MY PROFILE
# --------------------------------------------------
class UserUpdate(BaseModel):
    name: Optional[str] = None
    profile_url: Optional[str] = None
