"""
Newsroom - Authentication Flow

Login, logout, refresh and password change, built on the credential
store (newsroom.auth.accounts) and the stateless token service
(newsroom.auth.tokens).

Every failure path raises exactly one NewsroomError subclass.

Refresh tokens are single-use: each login or refresh overwrites the stored
value, so a rotated-out token no longer matches and is rejected.
"""

import logging
from typing import NamedTuple, Optional

from sqlmodel import Session as DBSession

from newsroom.auth import accounts
from newsroom.auth.models import Role, User
from newsroom.auth.password import needs_rehash
from newsroom.auth.schemas import AccountPublic
from newsroom.auth.tokens import TokenPair, issue_pair, verify_refresh_token
from newsroom.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


logger = logging.getLogger(__name__)


class LoginResult(NamedTuple):
    account: AccountPublic
    tokens: TokenPair


def sanitize(user: User) -> AccountPublic:
    return AccountPublic.model_validate(user)


def register(
    db: DBSession,
    username: str,
    email: str,
    full_name: str,
    password: str,
    bio: Optional[str] = None,
) -> AccountPublic:
    """Self-registration. Always creates a reader (Role.USER) account."""
    user = accounts.create_account(
        db,
        username=username,
        email=email,
        full_name=full_name,
        password=password,
        role=Role.USER,
        bio=bio or "",
    )
    return sanitize(user)


def _issue_and_store(db: DBSession, user: User) -> TokenPair:
    tokens = issue_pair(user)
    accounts.set_refresh_token(db, user.id, tokens.refresh_token)
    return tokens


def login(
    db: DBSession,
    password: str,
    username: Optional[str] = None,
    email: Optional[str] = None,
) -> LoginResult:
    """
    Authenticate by username or email plus password.

    Order of checks:
        1. an identifier is present          -> ValidationError
        2. an account matches                -> NotFoundError
        3. the account is not blocked        -> ForbiddenError
        4. the password verifies             -> UnauthorizedError
        5. issue and persist a token pair
    """
    if not (username or email):
        raise ValidationError("Either username or email must be provided")

    user = accounts.find_by_identifier(db, username=username, email=email)
    if not user:
        logger.info("auth.login.failure reason=user_not_found")
        raise NotFoundError("User does not exist")

    if user.is_blocked:
        logger.info("auth.login.failure id=%s reason=blocked", user.id)
        raise ForbiddenError("Your account has been blocked. Please contact support.")

    if not accounts.verify_secret(user, password):
        logger.info("auth.login.failure id=%s reason=invalid_password", user.id)
        raise UnauthorizedError("Invalid user credentials")

    # Upgrade digests created with an older work factor
    if needs_rehash(user.password):
        accounts.set_password(db, user, password)

    tokens = _issue_and_store(db, user)
    db.refresh(user)

    logger.info("auth.login.success id=%s", user.id)
    return LoginResult(account=sanitize(user), tokens=tokens)


def logout(db: DBSession, account_id) -> None:
    """Clear the stored refresh token. Logging out twice is not an error."""
    accounts.set_refresh_token(db, account_id, None)
    logger.info("auth.logout id=%s", account_id)


def refresh(db: DBSession, presented: Optional[str]) -> TokenPair:
    """
    Exchange a refresh token for a new pair, rotating the stored token.

    Raises:
        UnauthorizedError: token missing, invalid or expired, account gone,
            token does not match the stored one, or a concurrent refresh won
    """
    if not presented:
        raise UnauthorizedError("Unauthorized request")

    payload = verify_refresh_token(presented)

    user = accounts.get_account(db, payload.sub)
    if not user:
        raise UnauthorizedError("Invalid refresh token")

    if user.refresh_token != presented:
        logger.warning("auth.refresh.reuse id=%s", user.id)
        raise UnauthorizedError("Refresh token is expired or used")

    tokens = issue_pair(user)
    if not accounts.rotate_refresh_token(db, user.id, presented, tokens.refresh_token):
        logger.warning("auth.refresh.race id=%s", user.id)
        raise UnauthorizedError("Refresh token is expired or used")

    logger.info("auth.refresh id=%s", user.id)
    return tokens


def change_secret(
    db: DBSession,
    account_id,
    old_password: Optional[str],
    new_password: Optional[str],
) -> None:
    """
    Change the password after re-verifying the current one.

    Raises:
        ValidationError: either value missing
        NotFoundError: account no longer exists
        UnauthorizedError: old password wrong
    """
    if not old_password or not new_password:
        raise ValidationError("Old password and new password are required")

    user = accounts.get_account(db, account_id)
    if not user:
        raise NotFoundError("User not found")

    if not accounts.verify_secret(user, old_password):
        raise UnauthorizedError("Invalid old password")

    accounts.set_password(db, user, new_password)
    logger.info("auth.password.changed id=%s", user.id)
