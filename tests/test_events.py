from datetime import datetime, timezone

import pytest
from bson import ObjectId

from events.models import EventCreateRequest, EventUpdateRequest, RsvpRequest
from events.service import EventService
from rbac import Forbidden, InvalidInput, NotFound

WHEN = datetime(2026, 11, 20, 18, 0, tzinfo=timezone.utc)


async def make_event(store, organizer, *, public=False, title="Launch party", when=WHEN):
    req = EventCreateRequest(
        title=title,
        description="Cake",
        location="Hangar 2",
        eventDate=when,
        isPublic=public,
    )
    return await EventService(store).create(organizer, req)


class TestCreate:

    @pytest.mark.asyncio
    async def test_organizer_creates_private_by_default(self, store, ids):
        event = await make_event(store, ids["organizer"])
        assert event.isPublic is False
        assert event.createdBy == ids["organizer"].id
        assert event.attendees == []

    @pytest.mark.asyncio
    async def test_manager_cannot_create(self, store, ids):
        with pytest.raises(Forbidden):
            await make_event(store, ids["manager"])

    @pytest.mark.asyncio
    async def test_required_fields(self, store, ids):
        with pytest.raises(InvalidInput) as exc:
            await EventService(store).create(ids["organizer"], EventCreateRequest(title="Only title"))
        assert {e["field"] for e in exc.value.errors} == {"description", "location", "eventDate"}


class TestVisibility:

    @pytest.mark.asyncio
    async def test_list(self, store, ids):
        private = await make_event(store, ids["organizer"], title="Private")
        public = await make_event(
            store, ids["organizer"], public=True, title="Public",
            when=datetime(2026, 11, 1, tzinfo=timezone.utc),
        )
        service = EventService(store)

        # Soonest first
        assert [e.id for e in await service.list_visible(ids["organizer"])] == [public.id, private.id]
        assert [e.id for e in await service.list_visible(ids["member"])] == [public.id]

    @pytest.mark.asyncio
    async def test_private_event_hidden_from_others(self, store, ids):
        event = await make_event(store, ids["organizer"])
        with pytest.raises(Forbidden):
            await EventService(store).get(ids["member"], event.id)
        assert (await EventService(store).get(ids["organizer"], event.id)).id == event.id

    @pytest.mark.asyncio
    async def test_unknown_event(self, store, ids):
        with pytest.raises(NotFound):
            await EventService(store).get(ids["member"], str(ObjectId()))


class TestMutations:

    @pytest.mark.asyncio
    async def test_owner_update(self, store, ids):
        event = await make_event(store, ids["organizer"])
        updated = await EventService(store).update(ids["organizer"], event.id, EventUpdateRequest(isPublic=True))
        assert updated.isPublic is True
        assert updated.title == "Launch party"

    @pytest.mark.asyncio
    async def test_other_organizer_cannot_update_or_delete(self, store, ids, users):
        other = store.add_user("Olga Organizer", "olga@example.com", ids["organizer"].role)
        from conftest import identity_for

        other_id = identity_for(other)
        event = await make_event(store, ids["organizer"], public=True)
        service = EventService(store)
        with pytest.raises(Forbidden):
            await service.update(other_id, event.id, EventUpdateRequest(title="Mine"))
        with pytest.raises(Forbidden):
            await service.delete(other_id, event.id)

    @pytest.mark.asyncio
    async def test_delete(self, store, ids):
        event = await make_event(store, ids["organizer"])
        service = EventService(store)
        await service.delete(ids["organizer"], event.id)
        with pytest.raises(NotFound):
            await service.get(ids["organizer"], event.id)


class TestRsvp:

    @pytest.mark.asyncio
    async def test_repeat_rsvp_replaces(self, store, ids):
        event = await make_event(store, ids["organizer"], public=True)
        service = EventService(store)
        await service.rsvp(ids["member"], event.id, RsvpRequest(status="yes"))
        updated = await service.rsvp(ids["member"], event.id, RsvpRequest(status="no"))

        assert [(a.email, a.status.value) for a in updated.attendees] == [("bea@example.com", "no")]

    @pytest.mark.asyncio
    async def test_private_event_still_accepts_rsvp(self, store, ids):
        event = await make_event(store, ids["organizer"])
        updated = await EventService(store).rsvp(ids["member"], event.id, RsvpRequest(status="maybe"))
        assert updated.attendees[0].email == "bea@example.com"

    @pytest.mark.asyncio
    async def test_several_attendees(self, store, ids):
        event = await make_event(store, ids["organizer"], public=True)
        service = EventService(store)
        await service.rsvp(ids["member"], event.id, RsvpRequest(status="yes"))
        updated = await service.rsvp(ids["manager"], event.id, RsvpRequest(status="maybe"))
        assert len(updated.attendees) == 2

    @pytest.mark.asyncio
    async def test_invalid_status(self, store, ids):
        event = await make_event(store, ids["organizer"], public=True)
        store.calls.clear()
        with pytest.raises(InvalidInput) as exc:
            await EventService(store).rsvp(ids["member"], event.id, RsvpRequest(status="perhaps"))
        assert exc.value.message == "Invalid RSVP status"
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_unknown_event(self, store, ids):
        with pytest.raises(NotFound):
            await EventService(store).rsvp(ids["member"], str(ObjectId()), RsvpRequest(status="yes"))
