from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from mongo.constants import canonical_id
from rbac.permissions import Role


class UserSummary(BaseModel):
    """Reference to a user embedded in project and task responses."""
    id: str
    name: str = ""
    email: str = ""


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    createdAt: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserResponse":
        return cls(
            id=canonical_id(doc["_id"]),
            name=doc.get("name", ""),
            email=doc.get("email", ""),
            role=Role(doc["role"]),
            createdAt=doc.get("createdAt"),
        )
