from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    email: str
    username: str
    password: str


class LoginRequest(BaseModel):
    username: str = Field(..., description="Username or email")
    password: str


class GoogleAuthRequest(BaseModel):
    id_token: str = Field(..., description="ID token from Google Sign-In")


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class SendLoginCodeRequest(BaseModel):
    email: str


class LoginWithCodeRequest(BaseModel):
    email: str
    code: str = Field(..., min_length=6, max_length=6)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    username: str
    avatar_url: Optional[str] = None
    default_space_id: Optional[str] = None
    auth_provider: str
    has_password: bool
    created_at: datetime
    updated_at: datetime


class TokenResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
