"""Account models for the identity layer."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from finance_tracker.models.common import utc_now


class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: EmailStr
    name: Optional[str] = None
    password_hash: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


class UserPublic(BaseModel):
    """What the API reveals about an account."""

    id: UUID
    email: EmailStr
    name: Optional[str] = None
    is_active: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> 'UserPublic':
        return cls(**user.model_dump(exclude={"password_hash"}))


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
