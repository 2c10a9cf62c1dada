"""
Newsroom - JWT Token Management

Creates and validates the two token kinds:
- Access token: identity snapshot (id, email, username, full name, role),
  signed with ACCESS_TOKEN_SECRET, short-lived, never looked up in storage
- Refresh token: account id only, signed with REFRESH_TOKEN_SECRET,
  long-lived, valid only while it equals the value stored on the account

This module is stateless. Persisting the refresh token is the caller's job
(see newsroom.auth.flow).
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID
import secrets

from jose import JWTError, jwt
from pydantic import BaseModel, Field

from newsroom.config import settings
from newsroom.errors import UnauthorizedError


class InvalidTokenError(UnauthorizedError):
    """Raised when a token has a bad signature, bad payload or has expired."""


class AccessTokenPayload(BaseModel):
    """
    Access token claims.

    Attributes:
        sub: Account ID
        email, username, full_name: Identity snapshot at issue time
        role: Role at issue time (informational; the gate reloads the account)
        jti: Unique token ID for log correlation
    """
    sub: str
    email: str
    username: str
    full_name: str
    role: str
    jti: str
    exp: datetime
    iat: datetime


class RefreshTokenPayload(BaseModel):
    """Refresh token claims. Carries nothing but the account id."""
    sub: str
    jti: str
    exp: datetime
    iat: datetime


class TokenPair(BaseModel):
    """Access and refresh token issued together."""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


def _encode(claims: Dict[str, Any], secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        # Random jti so two tokens minted in the same second still differ
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def issue_access_token(identity, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token from an account (or anything with the same attributes).

    Args:
        identity: Object exposing id, email, username, full_name, role
        expires_delta: Optional custom lifetime (tests use negative values)

    Returns:
        Encoded JWT string
    """
    role = identity.role.value if hasattr(identity.role, "value") else str(identity.role)
    claims = {
        "sub": str(identity.id),
        "email": identity.email,
        "username": identity.username,
        "full_name": identity.full_name,
        "role": role,
    }
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(claims, settings.ACCESS_TOKEN_SECRET, lifetime)


def issue_refresh_token(account_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed refresh token that embeds only the account id."""
    lifetime = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode({"sub": str(account_id)}, settings.REFRESH_TOKEN_SECRET, lifetime)


def issue_pair(identity) -> TokenPair:
    """Issue a fresh access/refresh pair. No storage side effects."""
    return TokenPair(
        access_token=issue_access_token(identity),
        refresh_token=issue_refresh_token(identity.id),
    )


def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Verify signature and expiry, returning the raw claims.

    Raises:
        InvalidTokenError: bad signature, malformed token, expired, or no subject
    """
    if not token:
        raise InvalidTokenError("Token is missing")
    try:
        claims = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(f"Token validation failed: {e}")
    if not claims.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return claims


def verify_access_token(token: str) -> AccessTokenPayload:
    claims = verify_token(token, settings.ACCESS_TOKEN_SECRET)
    try:
        return AccessTokenPayload(**claims)
    except ValueError as e:
        raise InvalidTokenError(f"Malformed access token: {e}")


def verify_refresh_token(token: str) -> RefreshTokenPayload:
    claims = verify_token(token, settings.REFRESH_TOKEN_SECRET)
    try:
        return RefreshTokenPayload(**claims)
    except ValueError as e:
        raise InvalidTokenError(f"Malformed refresh token: {e}")


def get_token_expiry_seconds() -> int:
    """Access token lifetime in seconds, for responses."""
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
