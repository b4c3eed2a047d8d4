"""
Access token issuing and verification.

Both functions take the signing secret explicitly; nothing here reads
configuration.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import jwt  # PyJWT


@dataclass(frozen=True)
class VerifiedToken:
    user_id: str
    claims: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenFailure:
    reason: str


TokenVerification = Union[VerifiedToken, TokenFailure]


def create_access_token(
    *,
    user_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_minutes: int = 1440,
    email: Optional[str] = None,
    role: Optional[str] = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    token = jwt.encode(payload, secret, algorithm=algorithm)
    # PyJWT returns str in v2, bytes in v1; ensure str
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def verify_token(token: str, secret: str, algorithm: str = "HS256") -> TokenVerification:
    """Verify signature and expiry. Never raises for a bad token."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.InvalidTokenError as e:
        return TokenFailure(reason=str(e) or e.__class__.__name__)

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id.strip():
        return TokenFailure(reason="Token subject is missing")
    return VerifiedToken(user_id=user_id.strip(), claims=payload)
