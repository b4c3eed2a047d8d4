"""
Registration and login.

Emails are unique and compared case-insensitively: they are stored trimmed
and lower-cased, and every lookup normalizes the same way.
"""

import logging
from typing import Optional

import bcrypt
from pymongo.errors import DuplicateKeyError

from accounts.models import AuthResponse, LoginRequest, RegisterRequest
from mongo.constants import canonical_id, to_object_id
from mongo.store import WorkspaceStore
from rbac.errors import InvalidInput, NotFound, Unauthenticated
from rbac.permissions import Identity, Role
from rbac.tokens import create_access_token
from users.models import UserResponse
from validation import raise_if_invalid, require_fields, utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or oversized input
        return False


class AccountService:
    def __init__(self, store: WorkspaceStore, *, secret: str, algorithm: str, expires_minutes: int):
        self.store = store
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    def _issue(self, user: dict) -> AuthResponse:
        token = create_access_token(
            user_id=canonical_id(user["_id"]),
            secret=self.secret,
            algorithm=self.algorithm,
            expires_minutes=self.expires_minutes,
            email=user.get("email"),
            role=user.get("role"),
        )
        return AuthResponse(
            token=token,
            expiresIn=self.expires_minutes * 60,
            user=UserResponse.from_document(user),
        )

    async def register(self, req: RegisterRequest) -> AuthResponse:
        violations = []
        require_fields(req.model_dump(), ["name", "email", "password", "role"], violations)
        email = normalize_email(req.email)
        if email and "@" not in email:
            violations.append({"field": "email", "message": "Email is invalid"})
        if req.password:
            if len(req.password) < MIN_PASSWORD_LENGTH:
                violations.append({"field": "password", "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"})
            elif len(req.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
                violations.append({"field": "password", "message": f"Password must be at most {MAX_PASSWORD_BYTES} bytes"})
        raise_if_invalid(violations)
        role = Role.parse(req.role)

        if await self.store.find_user_by_email(email):
            raise InvalidInput("User already exists")

        now = utcnow()
        doc = {
            "name": req.name.strip(),
            "email": email,
            "password": hash_password(req.password),
            "role": role.value,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            user = await self.store.insert_user(doc)
        except DuplicateKeyError:
            raise InvalidInput("User already exists")

        logger.info(f"Registered user {canonical_id(user['_id'])} with role {role.value}")
        return self._issue(user)

    async def login(self, req: LoginRequest) -> AuthResponse:
        violations = []
        require_fields(req.model_dump(), ["email", "password"], violations)
        raise_if_invalid(violations)

        user = await self.store.find_user_by_email(normalize_email(req.email))
        if not user or not verify_password(req.password, user.get("password", "")):
            logger.info("Login failed: invalid credentials")
            raise Unauthenticated("Invalid credentials")
        if user.get("role") not in {r.value for r in Role}:
            logger.warning(f"User {canonical_id(user['_id'])} has unknown role {user.get('role')!r}")
            raise Unauthenticated("User role is invalid")
        return self._issue(user)

    async def me(self, identity: Identity) -> UserResponse:
        user = await self.store.find_user(to_object_id(identity.id))
        if not user:
            raise NotFound("User not found")
        return UserResponse.from_document(user)
