"""
RBAC (Role-Based Access Control) Module

Resolves the caller's identity from a bearer token, gates actions by role
and decides instance-level access by ownership and membership.
"""

from rbac.errors import (
    WorkspaceError,
    Unauthenticated,
    InvalidToken,
    Forbidden,
    NotFound,
    InvalidInput,
    Unexpected,
)

from rbac.permissions import (
    Identity,
    Role,
)

from rbac.auth import (
    get_current_user,
    resolve_identity,
    require_role,
)

from rbac.policies import (
    Action,
    Policy,
    ACTION_RULES,
    check_role,
    ensure_permitted,
    is_permitted,
    filter_permitted,
)

__all__ = [
    # Errors
    "WorkspaceError",
    "Unauthenticated",
    "InvalidToken",
    "Forbidden",
    "NotFound",
    "InvalidInput",
    "Unexpected",
    # Core types
    "Identity",
    "Role",
    # Auth
    "get_current_user",
    "resolve_identity",
    "require_role",
    # Policies
    "Action",
    "Policy",
    "ACTION_RULES",
    "check_role",
    "ensure_permitted",
    "is_permitted",
    "filter_permitted",
]
