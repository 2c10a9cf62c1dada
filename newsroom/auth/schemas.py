"""
Newsroom - Account Request/Response Schemas

Pydantic models for API request validation and response serialization.
Separates API contracts from database models; nothing here ever carries
the password digest or the stored refresh token.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from newsroom.auth.models import Role


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email format")
    return v


class AccountPublic(BaseModel):
    """Sanitized account, safe to return to any client."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    full_name: str
    bio: str = ""
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    role: Role
    is_blocked: bool
    created_at: datetime


class RegisterRequest(BaseModel):
    """Request body for POST /users/register."""
    full_name: str = Field(..., min_length=2, max_length=50)
    username: str = Field(..., min_length=3, max_length=20)
    email: str
    password: str = Field(..., min_length=6, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=250)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("username")
    @classmethod
    def username_format(cls, v: str) -> str:
        v = v.strip().lower()
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return normalize_email(v)


class AdminCreateUserRequest(RegisterRequest):
    """Request body for POST /admin/users. Admins pick the role."""
    role: Role


class LoginRequest(BaseModel):
    """Request body for POST /users/login. Either username or email is required."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v else v

    @model_validator(mode="after")
    def identifier_present(self) -> "LoginRequest":
        if not (self.username or self.email):
            raise ValueError("Either username or email must be provided to login")
        return self


class RefreshRequest(BaseModel):
    """Body for POST /users/refresh-token when the cookie is not available."""
    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    """Request body for POST /users/change-password."""
    old_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6, max_length=100)


class UpdateAccountRequest(BaseModel):
    """Request body for PATCH /users/update-account."""
    full_name: str = Field(..., min_length=2, max_length=50)
    email: str
    bio: Optional[str] = Field(default=None, max_length=250)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return normalize_email(v)


class RoleUpdateRequest(BaseModel):
    """Request body for PATCH /admin/users/{id}/role. Checked against Role by the store."""
    role: str


class LoginData(BaseModel):
    """Payload of a successful login."""
    user: AccountPublic
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenData(BaseModel):
    """Payload of a successful refresh."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
