"""
Newsroom - Account Routes

API endpoints for account lifecycle:
- POST  /users/register         - Create a reader account
- POST  /users/login            - Authenticate and issue a token pair
- POST  /users/logout           - Clear the refresh token and cookies
- POST  /users/refresh-token    - Rotate the token pair
- POST  /users/change-password  - Change password (re-verifies the old one)
- GET   /users/current-user     - Current account
- PATCH /users/update-account   - Update name, email, bio

Tokens go out both as HttpOnly cookies and in the response body, for
clients that cannot use cookies.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel import Session as DBSession

from newsroom.auth import accounts, flow
from newsroom.auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    AuthenticatedUser,
    get_current_user,
)
from newsroom.auth.schemas import (
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenData,
    UpdateAccountRequest,
)
from newsroom.auth.tokens import TokenPair, get_token_expiry_seconds
from newsroom.config import settings
from newsroom.database import get_db
from newsroom.errors import api_response
from newsroom.gateway.rbac import AUTHENTICATED, authorize


router = APIRouter(prefix="/users", tags=["users"])


def _cookie_options() -> dict:
    # SameSite=None is only honoured on Secure cookies, which these always are
    return {
        "httponly": True,
        "secure": True,
        "samesite": settings.COOKIE_SAMESITE,
        "path": "/",
    }


def set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, **options)
    response.set_cookie(REFRESH_COOKIE, tokens.refresh_token, **options)


def clear_auth_cookies(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a reader account")
async def register(body: RegisterRequest, db: DBSession = Depends(get_db)):
    account = flow.register(
        db,
        username=body.username,
        email=body.email,
        full_name=body.full_name,
        password=body.password,
        bio=body.bio,
    )
    return api_response(201, account.model_dump(mode="json"), "User registered successfully")


@router.post("/login", summary="Authenticate and issue tokens")
async def login(body: LoginRequest, response: Response, db: DBSession = Depends(get_db)):
    """
    Authenticate by username or email.

    Raises:
        400: neither identifier supplied
        404: no such account
        403: account blocked
        401: wrong password
    """
    result = flow.login(db, password=body.password, username=body.username, email=body.email)
    set_auth_cookies(response, result.tokens)

    data = LoginData(
        user=result.account,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        expires_in=get_token_expiry_seconds(),
    )
    return api_response(200, data.model_dump(mode="json"), "User logged In Successfully")


@router.post("/logout", summary="Log out and clear cookies")
async def logout(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    flow.logout(db, user.id)
    clear_auth_cookies(response)
    return api_response(200, {}, "User logged out successfully")


@router.post("/refresh-token", summary="Rotate the token pair")
async def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    db: DBSession = Depends(get_db),
):
    presented = request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)
    tokens = flow.refresh(db, presented)
    set_auth_cookies(response, tokens)

    data = TokenData(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=get_token_expiry_seconds(),
    )
    return api_response(200, data.model_dump(), "Access token refreshed")


@router.post("/change-password", summary="Change the current password")
async def change_password(
    body: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    authorize(user, AUTHENTICATED)
    flow.change_secret(db, user.id, body.old_password, body.new_password)
    return api_response(200, {}, "Password changed successfully")


@router.get("/current-user", summary="Get the current account")
async def current_user(
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    account = flow.sanitize(accounts.get_account_or_404(db, user.id))
    return api_response(200, account.model_dump(mode="json"), "Current user fetched successfully")


@router.patch("/update-account", summary="Update profile details")
async def update_account(
    body: UpdateAccountRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    authorize(user, AUTHENTICATED)
    updated = accounts.update_details(
        db, user.id, full_name=body.full_name, email=body.email, bio=body.bio
    )
    return api_response(
        200, flow.sanitize(updated).model_dump(mode="json"), "Account details updated successfully"
    )
