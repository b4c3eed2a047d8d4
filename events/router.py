import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from events.models import EventCreateRequest, EventResponse, EventUpdateRequest, RsvpRequest
from events.service import EventService
from mongo.store import WorkspaceStore, get_store
from projects.models import MessageResponse
from rbac import Identity, WorkspaceError, Unexpected, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(store: Annotated[WorkspaceStore, Depends(get_store)]) -> EventService:
    return EventService(store)


Caller = Annotated[Identity, Depends(get_current_user)]
Service = Annotated[EventService, Depends(get_event_service)]


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(req: EventCreateRequest, identity: Caller, service: Service):
    """Create an event (event organizers only)."""
    try:
        return await service.create(identity, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error creating event: {e}", exc_info=True)
        raise Unexpected("Error creating event", error=str(e))


@router.get("", response_model=List[EventResponse])
async def list_events(identity: Caller, service: Service):
    """Public events plus the caller's own, soonest first."""
    try:
        return await service.list_visible(identity)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching events: {e}", exc_info=True)
        raise Unexpected("Error fetching events", error=str(e))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, identity: Caller, service: Service):
    try:
        return await service.get(identity, event_id)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching event {event_id}: {e}", exc_info=True)
        raise Unexpected("Error fetching event", error=str(e))


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(event_id: str, req: EventUpdateRequest, identity: Caller, service: Service):
    try:
        return await service.update(identity, event_id, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error updating event {event_id}: {e}", exc_info=True)
        raise Unexpected("Error updating event", error=str(e))


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(event_id: str, identity: Caller, service: Service):
    try:
        await service.delete(identity, event_id)
        return MessageResponse(message="Event deleted successfully")
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error deleting event {event_id}: {e}", exc_info=True)
        raise Unexpected("Error deleting event", error=str(e))


@router.post("/{event_id}/rsvp", response_model=EventResponse)
async def rsvp_event(event_id: str, req: RsvpRequest, identity: Caller, service: Service):
    """RSVP as the caller: yes, no or maybe. Open to any authenticated user."""
    try:
        return await service.rsvp(identity, event_id, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error updating RSVP for event {event_id}: {e}", exc_info=True)
        raise Unexpected("Error updating RSVP", error=str(e))
