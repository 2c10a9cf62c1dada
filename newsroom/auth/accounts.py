"""
Newsroom - Credential Store

Persistence for accounts: creation with uniqueness checks, lookups,
refresh-token bookkeeping, and the admin-only mutations (block, role).

Security:
- Passwords are hashed by the User mapper hook, never here
- Administrators can never be blocked or moved to another role
- Refresh rotation is a compare-and-swap so a replayed token loses the race
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session as DBSession, select

from newsroom.auth.models import Role, User
from newsroom.auth.password import verify_password
from newsroom.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError


logger = logging.getLogger(__name__)


def _normalize(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if value else value


def parse_role(value) -> Role:
    """Coerce a string to Role, raising ValidationError for anything else."""
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(
            "Invalid role",
            errors=[{"field": "role", "message": f"Must be one of: {[r.value for r in Role]}"}],
        )


def get_account(db: DBSession, account_id) -> Optional[User]:
    """Load an account by id; None for unknown or malformed ids."""
    try:
        key = account_id if isinstance(account_id, UUID) else UUID(str(account_id))
    except ValueError:
        return None
    return db.get(User, key)


def get_account_or_404(db: DBSession, account_id) -> User:
    user = get_account(db, account_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def find_by_identifier(
    db: DBSession,
    username: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[User]:
    """
    Find an account whose username OR email matches.

    Raises:
        ValidationError: neither identifier supplied
    """
    clauses = []
    if username and username.strip():
        clauses.append(User.username == _normalize(username))
    if email and email.strip():
        clauses.append(User.email == _normalize(email))
    if not clauses:
        raise ValidationError("Either username or email must be provided")
    return db.exec(select(User).where(or_(*clauses))).first()


def create_account(
    db: DBSession,
    username: str,
    email: str,
    full_name: str,
    password: str,
    role: Role = Role.USER,
    bio: str = "",
    avatar: Optional[str] = None,
) -> User:
    """
    Create and persist an account.

    Raises:
        ConflictError: username or email already registered
        ValidationError: role outside the four known values
    """
    username = _normalize(username)
    email = _normalize(email)
    role = parse_role(role)

    existing = db.exec(
        select(User).where(or_(User.username == username, User.email == email))
    ).first()
    if existing:
        raise ConflictError("User with email or username already exists")

    user = User(
        username=username,
        email=email,
        full_name=full_name.strip(),
        password=password,
        role=role,
        bio=bio or "",
        avatar=avatar,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.rollback()
        raise ConflictError("User with email or username already exists")
    db.refresh(user)

    logger.info("account.created id=%s role=%s", user.id, user.role.value)
    return user


def verify_secret(user: User, password: str) -> bool:
    return verify_password(password, user.password)


def set_password(db: DBSession, user: User, password: str) -> None:
    """Replace the password; the mapper hook hashes it on flush."""
    user.password = password
    db.add(user)
    db.commit()


def set_refresh_token(db: DBSession, account_id, token: Optional[str]) -> None:
    """Overwrite (login) or clear (logout) the stored refresh token."""
    user = get_account(db, account_id)
    if not user:
        return
    user.refresh_token = token
    db.add(user)
    db.commit()


def rotate_refresh_token(db: DBSession, account_id: UUID, presented: str, new_token: str) -> bool:
    """
    Store new_token only if the account still holds presented.

    Returns:
        True if this caller won the rotation, False if the stored value
        changed underneath it (concurrent refresh or logout).
    """
    statement = (
        update(User)
        .where(User.id == account_id, User.refresh_token == presented)
        .values(refresh_token=new_token)
    )
    result = db.exec(statement)
    db.commit()
    return result.rowcount == 1


def set_blocked(db: DBSession, account_id, blocked: bool) -> User:
    """
    Block or unblock an account.

    Raises:
        NotFoundError: unknown account
        ForbiddenError: attempt to block an administrator

    Blocking also drops the stored refresh token.
    """
    user = get_account_or_404(db, account_id)
    if blocked and user.role == Role.ADMIN:
        raise ForbiddenError("Cannot block an Admin")

    user.is_blocked = blocked
    if blocked:
        # Existing sessions cannot be refreshed once blocked
        user.refresh_token = None
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def toggle_blocked(db: DBSession, account_id) -> User:
    user = get_account_or_404(db, account_id)
    return set_blocked(db, user.id, not user.is_blocked)


def set_role(db: DBSession, account_id, new_role) -> User:
    """
    Change an account's role.

    Raises:
        ValidationError: role outside the four known values
        NotFoundError: unknown account
        ForbiddenError: demoting an administrator, or promoting a blocked account
    """
    role = parse_role(new_role)
    user = get_account_or_404(db, account_id)

    if user.role == Role.ADMIN and role != Role.ADMIN:
        raise ForbiddenError("Cannot change an Admin's role")
    if role == Role.ADMIN and user.is_blocked:
        raise ForbiddenError("Cannot promote a blocked account to Admin")

    user.role = role
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_details(
    db: DBSession,
    account_id,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
    bio: Optional[str] = None,
) -> User:
    """Update profile fields, keeping email unique."""
    user = get_account_or_404(db, account_id)

    if email is not None:
        email = _normalize(email)
        if email != user.email:
            taken = db.exec(select(User).where(User.email == email)).first()
            if taken:
                raise ConflictError("Email already registered")
            user.email = email
    if full_name is not None:
        user.full_name = full_name.strip()
    if bio is not None:
        user.bio = bio

    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def list_accounts(
    db: DBSession,
    search: Optional[str] = None,
    role: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[User], int]:
    """Newest-first page of accounts plus the total match count."""
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                User.full_name.ilike(pattern),
                User.email.ilike(pattern),
                User.username.ilike(pattern),
            )
        )
    if role and role in {r.value for r in Role}:
        conditions.append(User.role == Role(role))

    total = db.exec(select(func.count()).select_from(User).where(*conditions)).one()
    users = db.exec(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return list(users), total
