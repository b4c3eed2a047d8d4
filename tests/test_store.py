"""
WorkspaceStore query shapes, checked against a recording collection so the
Mongo documents the store sends are pinned down without a server.
"""

import pytest
from bson import ObjectId
from pymongo import ReturnDocument

from mongo.constants import EVENTS_COLLECTION, TASKS_COLLECTION
from mongo.store import WorkspaceStore


class RecordingCollection:
    """Records every call; ``find_one_and_update`` answers from a script."""

    def __init__(self, results=()):
        self.results = list(results)
        self.calls = []

    async def find_one_and_update(self, filter, update, return_document=None):
        self.calls.append(("find_one_and_update", filter, update, return_document))
        return self.results.pop(0) if self.results else None

    async def replace_one(self, filter, replacement, upsert=False):
        self.calls.append(("replace_one", filter, replacement, upsert))


class RecordingDatabase:
    def __init__(self, **collections):
        self.collections = collections

    def __getitem__(self, name):
        return self.collections.setdefault(name, RecordingCollection())


EVENT_ID = ObjectId()
EMAIL = "bea@example.com"
EXISTING_ENTRY = (
    "find_one_and_update",
    {"_id": EVENT_ID, "attendees.email": EMAIL},
    {"$set": {"attendees.$.status": "yes"}},
    ReturnDocument.AFTER,
)
GUARDED_PUSH = (
    "find_one_and_update",
    {"_id": EVENT_ID, "attendees.email": {"$ne": EMAIL}},
    {"$push": {"attendees": {"email": EMAIL, "status": "yes"}}},
    ReturnDocument.AFTER,
)


def store_with_events(*results):
    events = RecordingCollection(results)
    return WorkspaceStore(RecordingDatabase(**{EVENTS_COLLECTION: events})), events


class TestSetRsvp:

    @pytest.mark.asyncio
    async def test_existing_attendee_is_updated_in_place(self):
        doc = {"_id": EVENT_ID, "attendees": [{"email": EMAIL, "status": "yes"}]}
        store, events = store_with_events(doc)

        assert await store.set_rsvp(EVENT_ID, EMAIL, "yes") == doc
        assert events.calls == [EXISTING_ENTRY]

    @pytest.mark.asyncio
    async def test_new_attendee_push_is_guarded_on_email(self):
        doc = {"_id": EVENT_ID, "attendees": [{"email": EMAIL, "status": "yes"}]}
        store, events = store_with_events(None, doc)

        assert await store.set_rsvp(EVENT_ID, EMAIL, "yes") == doc
        assert events.calls == [EXISTING_ENTRY, GUARDED_PUSH]

    @pytest.mark.asyncio
    async def test_lost_push_race_falls_back_to_set(self):
        doc = {"_id": EVENT_ID, "attendees": [{"email": EMAIL, "status": "yes"}]}
        store, events = store_with_events(None, None, doc)

        assert await store.set_rsvp(EVENT_ID, EMAIL, "yes") == doc
        assert events.calls == [EXISTING_ENTRY, GUARDED_PUSH, EXISTING_ENTRY]

    @pytest.mark.asyncio
    async def test_missing_event(self):
        store, events = store_with_events()

        assert await store.set_rsvp(EVENT_ID, EMAIL, "yes") is None
        assert len(events.calls) == 3


class TestRestoreTasks:

    @pytest.mark.asyncio
    async def test_upserts_each_snapshot_by_id(self):
        tasks = RecordingCollection()
        store = WorkspaceStore(RecordingDatabase(**{TASKS_COLLECTION: tasks}))
        snapshot = [
            {"_id": ObjectId(), "title": "a", "projectId": ObjectId()},
            {"_id": ObjectId(), "title": "b", "projectId": ObjectId()},
        ]

        await store.restore_tasks(snapshot)

        assert tasks.calls == [
            ("replace_one", {"_id": doc["_id"]}, doc, True) for doc in snapshot
        ]

    @pytest.mark.asyncio
    async def test_empty_snapshot_writes_nothing(self):
        tasks = RecordingCollection()
        store = WorkspaceStore(RecordingDatabase(**{TASKS_COLLECTION: tasks}))

        await store.restore_tasks([])

        assert tasks.calls == []
