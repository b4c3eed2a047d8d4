#!/usr/bin/env python3
"""
Authentication utilities for RBAC system
Resolves the bearer credential into an Identity and gates actions by role
"""

import logging
from typing import Annotated, Iterable, Optional

from fastapi import Depends, Header, Request

import constants
from mongo.constants import canonical_id, to_object_id
from mongo.store import WorkspaceStore, get_store
from rbac.errors import Forbidden, InvalidToken, Unauthenticated
from rbac.permissions import Identity, Role
from rbac.tokens import TokenFailure, verify_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Return the token carried by an ``Authorization`` header value.

    Raises:
        Unauthenticated: header missing or empty after removing the prefix
    """
    if not header_value:
        raise Unauthenticated("No token provided")
    token = header_value
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    token = token.strip()
    if not token:
        raise Unauthenticated("No token provided")
    return token


async def resolve_identity(
    authorization: Optional[str],
    *,
    secret: str,
    algorithm: str,
    store: WorkspaceStore,
) -> Identity:
    """Turn an ``Authorization`` header into a verified Identity.

    Raises:
        Unauthenticated: no credential, or the user no longer exists
        InvalidToken: the token failed verification
    """
    token = extract_bearer_token(authorization)

    result = verify_token(token, secret, algorithm)
    if isinstance(result, TokenFailure):
        logger.info(f"Token verification failed: {result.reason}")
        raise InvalidToken("Token verification failed", error=result.reason)

    try:
        user_oid = to_object_id(result.user_id)
    except ValueError:
        logger.info("Token subject is not a valid user id")
        raise Unauthenticated("User not found")

    user = await store.find_user(user_oid)
    if not user:
        logger.info(f"User not found for id {result.user_id}")
        raise Unauthenticated("User not found")

    try:
        role = Role(user.get("role"))
    except ValueError:
        logger.warning(f"User {result.user_id} has unknown role {user.get('role')!r}")
        raise Unauthenticated("User role is invalid")

    return Identity(
        id=canonical_id(user["_id"]),
        email=user.get("email", ""),
        role=role,
        name=user.get("name", ""),
    )


async def get_current_user(
    request: Request,
    store: Annotated[WorkspaceStore, Depends(get_store)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Identity:
    """FastAPI dependency resolving the caller and attaching it to ``request.state``."""
    identity = await resolve_identity(
        authorization,
        secret=constants.JWT_SECRET,
        algorithm=constants.JWT_ALGORITHM,
        store=store,
    )
    request.state.identity = identity
    return identity


def require_role(identity: Optional[Identity], allowed_roles: Optional[Iterable[Role]]) -> Identity:
    """Permit iff the identity's role is allowed. ``None`` means any role."""
    if identity is None:
        raise Unauthenticated("Authentication required")
    if allowed_roles is None:
        return identity
    allowed = set(allowed_roles)
    if identity.role not in allowed:
        logger.info(f"Role {identity.role.value} denied; allowed: {sorted(r.value for r in allowed)}")
        raise Forbidden("Access denied")
    return identity
