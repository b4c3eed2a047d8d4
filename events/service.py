"""
Event lifecycle and RSVPs.

Private events are visible to their creator only; public events to every
authenticated user. Any authenticated user may RSVP, keyed by their own
email.
"""

import logging
from typing import Any, Dict, List

from events.models import (
    Attendee,
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    RsvpRequest,
    RsvpStatus,
)
from mongo.constants import canonical_id, to_object_id
from mongo.store import WorkspaceStore
from rbac.errors import NotFound
from rbac.filters import event_visibility_filter
from rbac.permissions import Identity
from rbac.policies import Action, check_role, ensure_permitted, filter_permitted
from validation import (
    clean_text,
    parse_enum,
    parse_path_id,
    raise_if_invalid,
    reject_blank,
    require_fields,
    utcnow,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["title", "description", "location"]


def to_response(doc: Dict[str, Any]) -> EventResponse:
    return EventResponse(
        id=canonical_id(doc["_id"]),
        title=doc.get("title", ""),
        description=doc.get("description", ""),
        location=doc.get("location", ""),
        eventDate=doc.get("eventDate"),
        isPublic=bool(doc.get("isPublic", False)),
        createdBy=canonical_id(doc.get("createdBy")),
        attendees=[
            Attendee(email=a.get("email", ""), status=RsvpStatus(a.get("status", RsvpStatus.MAYBE.value)))
            for a in doc.get("attendees") or []
        ],
        createdAt=doc.get("createdAt"),
    )


class EventService:
    def __init__(self, store: WorkspaceStore):
        self.store = store

    async def load(self, event_id: str) -> Dict[str, Any]:
        event = await self.store.find_event(parse_path_id(event_id, "Event"))
        if not event:
            raise NotFound("Event not found")
        return event

    async def create(self, identity: Identity, req: EventCreateRequest) -> EventResponse:
        check_role(identity, Action.EVENT_CREATE)

        violations = []
        require_fields(req.model_dump(), TEXT_FIELDS + ["eventDate"], violations)
        raise_if_invalid(violations)

        doc = {
            "title": clean_text(req.title),
            "description": clean_text(req.description),
            "location": clean_text(req.location),
            "eventDate": req.eventDate,
            "isPublic": req.isPublic,
            "createdBy": to_object_id(identity.id),
            "attendees": [],
            "createdAt": utcnow(),
        }
        event = await self.store.insert_event(doc)
        logger.info(f"Event {canonical_id(event['_id'])} created by {identity.id}")
        return to_response(event)

    async def list_visible(self, identity: Identity) -> List[EventResponse]:
        docs = await self.store.find_events(event_visibility_filter(identity))
        return [to_response(doc) for doc in filter_permitted(identity, Action.EVENT_VIEW, docs, "event")]

    async def get(self, identity: Identity, event_id: str) -> EventResponse:
        event = await self.load(event_id)
        ensure_permitted(identity, Action.EVENT_VIEW, event=event)
        return to_response(event)

    async def update(self, identity: Identity, event_id: str, req: EventUpdateRequest) -> EventResponse:
        check_role(identity, Action.EVENT_UPDATE)

        supplied = req.model_dump(exclude_unset=True)
        violations = []
        reject_blank(supplied, TEXT_FIELDS, violations)
        raise_if_invalid(violations)
        fields: Dict[str, Any] = {}
        for key in TEXT_FIELDS:
            if supplied.get(key) is not None:
                fields[key] = clean_text(supplied[key])
        for key in ("eventDate", "isPublic"):
            if supplied.get(key) is not None:
                fields[key] = supplied[key]

        event = await self.load(event_id)
        ensure_permitted(identity, Action.EVENT_UPDATE, event=event)

        if not fields:
            return to_response(event)
        updated = await self.store.update_event(event["_id"], fields)
        if not updated:
            raise NotFound("Event not found")
        return to_response(updated)

    async def delete(self, identity: Identity, event_id: str) -> None:
        check_role(identity, Action.EVENT_DELETE)

        event = await self.load(event_id)
        ensure_permitted(identity, Action.EVENT_DELETE, event=event)

        await self.store.delete_event(event["_id"])
        logger.info(f"Event {canonical_id(event['_id'])} deleted by {identity.id}")

    async def rsvp(self, identity: Identity, event_id: str, req: RsvpRequest) -> EventResponse:
        """Record the caller's attendance. Repeating an RSVP replaces it."""
        check_role(identity, Action.EVENT_RSVP)
        rsvp_status = parse_enum(RsvpStatus, req.status, message="Invalid RSVP status")

        event = await self.load(event_id)
        ensure_permitted(identity, Action.EVENT_RSVP, event=event)

        updated = await self.store.set_rsvp(event["_id"], identity.email.strip().lower(), rsvp_status.value)
        if not updated:
            raise NotFound("Event not found")
        return to_response(updated)
