from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RsvpStatus(str, Enum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"


class EventCreateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    eventDate: Optional[datetime] = None
    isPublic: bool = False


class EventUpdateRequest(BaseModel):
    """Partial update; owner and attendees are not editable here."""
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    eventDate: Optional[datetime] = None
    isPublic: Optional[bool] = None


class RsvpRequest(BaseModel):
    # The attendee is always the caller; no email is accepted here
    status: Optional[str] = None


class Attendee(BaseModel):
    email: str
    status: RsvpStatus = RsvpStatus.MAYBE


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    location: str
    eventDate: Optional[datetime] = None
    isPublic: bool = False
    createdBy: str
    attendees: List[Attendee] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
