from pydantic import BaseModel, EmailStr

from connectr.schemas.user_schema import PublicProfile


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user_id: str
    user_name: str


class RegisterOut(BaseModel):
    user: PublicProfile
    tokens: TokenOut
