"""
Newsroom - Security Dependencies

FastAPI dependencies for authentication and authorization.

Usage:
    @router.get("/protected")
    async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
        ...

    @router.get("/admin-only")
    async def admin_route(user: AuthenticatedUser = Depends(require_capability(Capability.MANAGE_USERS))):
        ...

Security:
- Access token read from the accessToken cookie or the Bearer header
- Token claims are never trusted alone; the account is reloaded every request
- RBAC is deny-by-default (see newsroom.gateway.rbac)
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session as DBSession

from newsroom.auth import accounts
from newsroom.auth.models import Role
from newsroom.auth.tokens import verify_access_token
from newsroom.database import get_db
from newsroom.errors import ForbiddenError, UnauthorizedError
from newsroom.gateway.rbac import AUTHENTICATED, Capability, Requirement, authorize


ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# HTTP Bearer scheme for JWT extraction
security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """
    Validated, freshly loaded account for the current request.

    Available in route handlers via Depends(get_current_user).
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    full_name: str
    role: Role
    is_blocked: bool
    token_id: str = ""


def extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


def _authenticate(db: DBSession, token: Optional[str]) -> AuthenticatedUser:
    if not token:
        raise UnauthorizedError("Unauthorized request")

    payload = verify_access_token(token)

    user = accounts.get_account(db, payload.sub)
    if not user:
        raise UnauthorizedError("Invalid Access Token")

    current = AuthenticatedUser(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        is_blocked=user.is_blocked,
        token_id=payload.jti,
    )
    # Blocked accounts fail at the gate, whatever the route requires
    authorize(current, AUTHENTICATED)
    return current


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: DBSession = Depends(get_db),
) -> AuthenticatedUser:
    """
    Validate request authentication and return the current account.

    Steps:
    1. Extract the token from cookie or Authorization header
    2. Verify signature and expiry against the access secret
    3. Reload the account from the database
    4. Refuse blocked accounts

    Raises:
        UnauthorizedError: token missing or invalid, or account deleted
        ForbiddenError: account blocked
    """
    return _authenticate(db, extract_access_token(request, credentials))


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: DBSession = Depends(get_db),
) -> Optional[AuthenticatedUser]:
    """Like get_current_user, but anonymous, invalid or blocked callers yield None."""
    token = extract_access_token(request, credentials)
    if not token:
        return None
    try:
        return _authenticate(db, token)
    except (UnauthorizedError, ForbiddenError):
        return None


def require_capability(capability: Capability):
    """
    Dependency factory for routes that are a pure role check.

    Usage:
        admin: AuthenticatedUser = Depends(require_capability(Capability.MANAGE_USERS))

    Raises:
        UnauthorizedError / ForbiddenError via authorize()
    """
    requirement = Requirement(capability=capability)

    async def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        authorize(user, requirement, message=f"Permission denied: {capability.value}")
        return user

    return dependency
