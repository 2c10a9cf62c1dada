"""
Newsroom - Password Hashing Utilities

bcrypt hashing for account passwords. The work factor comes from
settings (default 10) and old digests are upgraded on the next login.

Security:
- Never log or expose plaintext passwords
- bcrypt includes salt automatically
- Inputs are truncated to bcrypt's 72-byte limit before hashing
"""

import bcrypt

from newsroom.config import settings


# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plaintext password

    Returns:
        bcrypt hash string (includes salt and work factor)

    Example:
        >>> hashed = hash_password("s3cret-pass")
        >>> hashed.startswith("$2b$")
        True
    """
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_WORK_FACTOR)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed or empty
    digest counts as a mismatch rather than an error.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_rehash(hashed_password: str, target_work_factor: int = None) -> bool:
    """
    Check whether a digest was produced with a lower work factor than configured.

    Example:
        # After raising BCRYPT_WORK_FACTOR from 10 to 12:
        >>> needs_rehash(old_hash)
        True
    """
    target = target_work_factor or settings.BCRYPT_WORK_FACTOR
    try:
        # bcrypt hash format: $2b$XX$...
        _, work_factor_str, _ = hashed_password.split("$")[1:4]
        return int(work_factor_str) < target
    except (ValueError, IndexError, AttributeError):
        return True
