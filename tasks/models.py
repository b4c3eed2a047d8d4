from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from users.models import UserSummary


class TaskStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskCreateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    projectId: Optional[str] = None
    assignedTo: List[str] = Field(default_factory=list)
    priority: Optional[str] = None
    dueDate: Optional[datetime] = None


class TaskUpdateRequest(BaseModel):
    """Partial update. ``projectId`` may be echoed back but never changed."""
    title: Optional[str] = None
    description: Optional[str] = None
    projectId: Optional[str] = None
    assignedTo: Optional[List[str]] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    dueDate: Optional[datetime] = None


class TaskStatusRequest(BaseModel):
    status: Optional[str] = None


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str
    projectId: str
    assignedTo: List[UserSummary] = Field(default_factory=list)
    status: TaskStatus
    priority: TaskPriority
    dueDate: Optional[datetime] = None
    createdAt: Optional[datetime] = None
