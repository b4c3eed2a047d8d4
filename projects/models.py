from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from users.models import UserSummary


class ProjectStatus(str, Enum):
    PLANNING = "Planning"
    ACTIVE = "Active"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"


class ProjectCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    teamMembers: List[str] = Field(default_factory=list)


class ProjectUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their current value."""
    name: Optional[str] = None
    description: Optional[str] = None
    teamMembers: Optional[List[str]] = None


class StatusUpdateRequest(BaseModel):
    # Parsed by the service so an unknown value is reported as "Invalid status"
    status: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: str
    status: ProjectStatus
    createdBy: UserSummary
    teamMembers: List[UserSummary] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str
