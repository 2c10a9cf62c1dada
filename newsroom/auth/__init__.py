"""
Newsroom - Authentication Package

Accounts and sessions for the newsroom API:
- bcrypt password hashing in a single mapper hook
- Access/refresh JWT pair with single-use refresh rotation
- Capability-based RBAC with deny-by-default
"""

from newsroom.auth.models import User, Role
from newsroom.auth.dependencies import AuthenticatedUser, get_current_user, require_capability
from newsroom.auth.tokens import issue_access_token, verify_access_token

__all__ = [
    "User",
    "Role",
    "AuthenticatedUser",
    "get_current_user",
    "require_capability",
    "issue_access_token",
    "verify_access_token",
]
