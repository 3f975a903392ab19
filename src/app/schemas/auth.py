# src/app/schemas/auth.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.app.domain.models import UserIdentity


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6)
    displayName: str = Field(..., min_length=1, max_length=120)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class ProviderLoginRequest(BaseModel):
    provider: str = Field(..., min_length=1, description="e.g. google")
    idToken: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)


class UserResponse(BaseModel):
    uid: str
    email: Optional[str] = None
    displayName: Optional[str] = None
    photoURL: Optional[str] = None

    @classmethod
    def from_domain(cls, user: UserIdentity) -> "UserResponse":
        return cls(uid=user.uid, email=user.email, displayName=user.display_name, photoURL=user.photo_url)


class SessionResponse(BaseModel):
    user: UserResponse
    accessToken: Optional[str] = None
