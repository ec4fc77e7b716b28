# backend/app/models/identity.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, EmailStr, Field


class AuthEvent(str, Enum):
    initial_session = "INITIAL_SESSION"
    signed_in = "SIGNED_IN"
    signed_out = "SIGNED_OUT"
    token_refreshed = "TOKEN_REFRESHED"
    user_updated = "USER_UPDATED"


class AuthUser(BaseModel):
    """User object as returned by the auth service."""
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "ignore"


class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: str = "bearer"
    user: AuthUser

    class Config:
        extra = "ignore"


class Identity(BaseModel):
    """Row of the users table; owned by the auth service."""
    id: str
    email: str
    company_name: Optional[str] = None
    membership_tier: Optional[str] = None
    membership_expires: Optional[datetime] = None
    logo_url: Optional[str] = None
    business_link: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        extra = "ignore"
        json_encoders = {
            datetime: lambda v: v.isoformat(),
        }

    @classmethod
    def from_auth_user(cls, user: AuthUser) -> "Identity":
        meta = user.user_metadata or {}
        return cls(
            id=user.id,
            email=user.email or "",
            company_name=meta.get("company_name"),
            business_link=meta.get("business_link"),
            phone=meta.get("phone"),
        )


class AuthError(BaseModel):
    message: str
    code: Optional[str] = None


class AuthResult(BaseModel):
    identity: Optional[Identity] = None
    session: Optional[Session] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# Input schema for signup (request body)
class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    company_name: str
    company_url: Optional[str] = None


# Input schema for login (request body)
class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class ResetPasswordRequest(BaseModel):
    email: EmailStr
