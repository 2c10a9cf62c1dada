"""
Newsroom - Account Database Models

SQLModel-based model for portal accounts.
Uses PostgreSQL for production, SQLite for local development.

Security:
- Passwords stored as bcrypt hashes only
- Hashing happens in one mapper hook, whatever code path changes the value
- Only the latest refresh token is kept per account
- All timestamps in UTC
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Column, DateTime, String, event, inspect
from sqlalchemy import Enum as SQLEnum
from sqlmodel import Field, SQLModel

from newsroom.auth.password import hash_password


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def created_column(index: bool = False) -> Column:
    """Timezone-aware creation timestamp; each table needs its own Column."""
    return Column(DateTime(timezone=True), nullable=False, default=utcnow, index=index)


def updated_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Role(str, Enum):
    """
    Account roles for RBAC.

    Exactly four variants; capability grants live in gateway/policies.yaml.
    USER is the reader role and the default for self-registration.
    """
    ADMIN = "admin"
    EDITOR = "editor"
    REPORTER = "reporter"
    USER = "user"


class User(SQLModel, table=True):
    """
    Portal account.

    Attributes:
        id: Unique identifier (UUIDv4)
        username: Unique handle, stored lowercase
        email: Unique email, stored lowercase
        full_name: Display name
        password: bcrypt digest. Assign plaintext; the flush hook hashes it.
        role: RBAC role
        is_blocked: Blocked accounts cannot authenticate
        refresh_token: The single outstanding refresh token, or None
    """
    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(
        sa_column=Column(String(50), unique=True, index=True, nullable=False),
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
    )
    full_name: str = Field(sa_column=Column(String(100), nullable=False, index=True))
    password: str = Field(sa_column=Column(String(255), nullable=False))
    bio: str = Field(default="", sa_column=Column(String(250), nullable=False, default=""))
    avatar: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))
    cover_image: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))
    role: Role = Field(
        default=Role.USER,
        sa_column=Column(SQLEnum(Role), nullable=False, default=Role.USER),
    )
    is_blocked: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
    )
    refresh_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(1024), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=created_column(),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=updated_column(),
    )


@event.listens_for(User, "before_insert")
def _hash_password_on_insert(mapper, connection, target: User) -> None:
    target.password = hash_password(target.password)


@event.listens_for(User, "before_update")
def _hash_password_on_update(mapper, connection, target: User) -> None:
    # Only rehash when the column was actually assigned since the last flush
    if inspect(target).attrs.password.history.has_changes():
        target.password = hash_password(target.password)
