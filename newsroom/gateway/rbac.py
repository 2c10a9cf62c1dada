"""
Newsroom - Role-Based Access Control (RBAC)

One declarative policy for every mutating endpoint. Routes declare a
Requirement (capability, ownership, or either) and call authorize();
nothing compares role strings inline.

Evaluation order is fixed and the first failing check decides the error:
    1. authentication present      -> UnauthorizedError
    2. actor not blocked           -> ForbiddenError
    3. capability or ownership     -> ForbiddenError

Ownership lets an actor edit their own resource, never delete it.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional, Set

import yaml

from newsroom.errors import ForbiddenError, UnauthorizedError

if TYPE_CHECKING:
    from newsroom.auth.dependencies import AuthenticatedUser


POLICY_PATH = Path(__file__).parent / "policies.yaml"


class Capability(str, Enum):
    """Capability groups granted to roles in policies.yaml."""
    PUBLISH_CONTENT = "publish:content"
    EDIT_ANY_CONTENT = "edit:any_content"
    MANAGE_USERS = "manage:users"
    MANAGE_SITE = "manage:site"
    STAFF_DASHBOARD = "access:dashboard"


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Requirement:
    """
    What a protected operation needs.

    neither                 -> any authenticated, unblocked account
    capability only         -> pure role check
    allow_owner only        -> pure ownership check
    both                    -> role OR ownership
    """
    capability: Optional[Capability] = None
    allow_owner: bool = False


AUTHENTICATED = Requirement()


class AuthorizationPolicy:
    """
    Role-to-capability mapping loaded from policies.yaml.

    Singleton; deny-by-default when the file is missing or a role is unknown.
    """

    _instance: Optional["AuthorizationPolicy"] = None
    _grants: Dict[str, Set[str]] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_policies()
        return cls._instance

    def _load_policies(self):
        if not POLICY_PATH.exists():
            self._grants = {}
            return

        with open(POLICY_PATH, "r") as f:
            config = yaml.safe_load(f) or {}

        self._grants = {
            role: set(perms or [])
            for role, perms in config.get("roles", {}).items()
        }

    def has_capability(self, role, capability: Capability) -> bool:
        role_key = role.value if hasattr(role, "value") else str(role)
        return capability.value in self._grants.get(role_key, set())

    def get_role_capabilities(self, role) -> Set[str]:
        role_key = role.value if hasattr(role, "value") else str(role)
        return set(self._grants.get(role_key, set()))


def _is_owner(actor: "AuthenticatedUser", owner_id) -> bool:
    return owner_id is not None and str(owner_id) == str(actor.id)


def is_permitted(
    actor: Optional["AuthenticatedUser"],
    requirement: Requirement,
    action: Action = Action.UPDATE,
    owner_id=None,
) -> bool:
    """Boolean form of authorize(), for branching (e.g. draft vs. publish)."""
    try:
        authorize(actor, requirement, action=action, owner_id=owner_id)
    except (UnauthorizedError, ForbiddenError):
        return False
    return True


def authorize(
    actor: Optional["AuthenticatedUser"],
    requirement: Requirement,
    action: Action = Action.UPDATE,
    owner_id=None,
    message: str = "You are not authorized to perform this action",
) -> None:
    """
    Raise unless actor may perform action under requirement.

    Args:
        actor: Authenticated account, or None for anonymous requests
        requirement: Capability and/or ownership the operation accepts
        action: DELETE is never granted through ownership alone
        owner_id: Author/owner of the target resource, if any
        message: Error text for the 403

    Raises:
        UnauthorizedError: no actor
        ForbiddenError: blocked actor, or neither rule grants access
    """
    if actor is None:
        raise UnauthorizedError("Authentication required")

    if actor.is_blocked:
        raise ForbiddenError("Your account has been blocked")

    if requirement.capability is None and not requirement.allow_owner:
        return

    if requirement.capability is not None:
        if AuthorizationPolicy().has_capability(actor.role, requirement.capability):
            return

    if requirement.allow_owner and action != Action.DELETE and _is_owner(actor, owner_id):
        return

    raise ForbiddenError(message)
