"""
Error taxonomy shared by the access gates and the resource handlers.

Every error carries the HTTP status it maps to, a human readable message and
an optional underlying ``error`` string surfaced to the client for
diagnostics.
"""

from typing import Any, Dict, List, Optional


class WorkspaceError(Exception):
    """Base class for errors rendered as ``{message, error?}`` responses."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class Unauthenticated(WorkspaceError):
    """No credential, an unusable credential, or a principal that no longer exists."""

    status_code = 401


class InvalidToken(Unauthenticated):
    """The bearer token failed signature, expiry or format verification."""


class Forbidden(WorkspaceError):
    status_code = 403


class NotFound(WorkspaceError):
    status_code = 404


class InvalidInput(WorkspaceError):
    """Missing or malformed fields. ``errors`` lists the individual violations."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None, error: Optional[str] = None):
        super().__init__(message, error)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class Unexpected(WorkspaceError):
    """Store or infrastructure failure."""

    status_code = 500
