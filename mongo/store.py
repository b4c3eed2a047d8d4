#!/usr/bin/env python3
"""
Workspace document store.

Thin repository over the Motor collections. Documents are returned as plain
dicts with ObjectId identifiers; access decisions are made by the callers.
"""

from typing import Any, Dict, Iterable, List, Optional
import logging

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from mongo.client import direct_mongo_client
from mongo.constants import (
    USERS_COLLECTION,
    PROJECTS_COLLECTION,
    TASKS_COLLECTION,
    EVENTS_COLLECTION,
)

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class WorkspaceStore:
    """Async CRUD over users, projects, tasks and events"""

    def __init__(self, db):
        self.db = db

    @property
    def users(self):
        return self.db[USERS_COLLECTION]

    @property
    def projects(self):
        return self.db[PROJECTS_COLLECTION]

    @property
    def tasks(self):
        return self.db[TASKS_COLLECTION]

    @property
    def events(self):
        return self.db[EVENTS_COLLECTION]

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def insert_user(self, doc: Document) -> Document:
        result = await self.users.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def find_user(self, user_id: ObjectId) -> Optional[Document]:
        return await self.users.find_one({"_id": user_id})

    async def find_user_by_email(self, email: str) -> Optional[Document]:
        return await self.users.find_one({"email": email})

    async def find_users(self, user_ids: Optional[Iterable[ObjectId]] = None) -> List[Document]:
        """Return users without their password hash, optionally restricted to ids."""
        query: Document = {}
        if user_ids is not None:
            query = {"_id": {"$in": list(user_ids)}}
        cursor = self.users.find(query, {"password": 0}).sort("name", ASCENDING)
        return await cursor.to_list(length=None)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def insert_project(self, doc: Document) -> Document:
        result = await self.projects.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def find_project(self, project_id: ObjectId) -> Optional[Document]:
        return await self.projects.find_one({"_id": project_id})

    async def find_projects(self, query: Document) -> List[Document]:
        cursor = self.projects.find(query).sort("createdAt", DESCENDING)
        return await cursor.to_list(length=None)

    async def update_project(self, project_id: ObjectId, fields: Document) -> Optional[Document]:
        return await self.projects.find_one_and_update(
            {"_id": project_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_project(self, project_id: ObjectId) -> bool:
        result = await self.projects.delete_one({"_id": project_id})
        return result.deleted_count > 0

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def insert_task(self, doc: Document) -> Document:
        result = await self.tasks.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def find_task(self, task_id: ObjectId) -> Optional[Document]:
        return await self.tasks.find_one({"_id": task_id})

    async def find_tasks(self, query: Document) -> List[Document]:
        cursor = self.tasks.find(query).sort("createdAt", ASCENDING)
        return await cursor.to_list(length=None)

    async def update_task(self, task_id: ObjectId, fields: Document) -> Optional[Document]:
        return await self.tasks.find_one_and_update(
            {"_id": task_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_task(self, task_id: ObjectId) -> bool:
        result = await self.tasks.delete_one({"_id": task_id})
        return result.deleted_count > 0

    async def delete_tasks(self, query: Document) -> int:
        result = await self.tasks.delete_many(query)
        return result.deleted_count

    async def restore_tasks(self, docs: List[Document]) -> None:
        """Re-insert previously deleted tasks. Safe to call with tasks that still exist."""
        for doc in docs:
            await self.tasks.replace_one({"_id": doc["_id"]}, doc, upsert=True)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def insert_event(self, doc: Document) -> Document:
        result = await self.events.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def find_event(self, event_id: ObjectId) -> Optional[Document]:
        return await self.events.find_one({"_id": event_id})

    async def find_events(self, query: Document) -> List[Document]:
        cursor = self.events.find(query).sort("eventDate", ASCENDING)
        return await cursor.to_list(length=None)

    async def update_event(self, event_id: ObjectId, fields: Document) -> Optional[Document]:
        return await self.events.find_one_and_update(
            {"_id": event_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_event(self, event_id: ObjectId) -> bool:
        result = await self.events.delete_one({"_id": event_id})
        return result.deleted_count > 0

    async def set_rsvp(self, event_id: ObjectId, email: str, status: str) -> Optional[Document]:
        """Upsert the attendee entry for ``email``.

        Overwrites the status of an existing entry, otherwise appends one. The
        push is guarded on the email being absent so two concurrent first-time
        RSVPs from the same caller still leave a single entry.
        """
        updated = await self.events.find_one_and_update(
            {"_id": event_id, "attendees.email": email},
            {"$set": {"attendees.$.status": status}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is not None:
            return updated

        updated = await self.events.find_one_and_update(
            {"_id": event_id, "attendees.email": {"$ne": email}},
            {"$push": {"attendees": {"email": email, "status": status}}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is not None:
            return updated

        # Lost a race with a concurrent push for the same email
        return await self.events.find_one_and_update(
            {"_id": event_id, "attendees.email": email},
            {"$set": {"attendees.$.status": status}},
            return_document=ReturnDocument.AFTER,
        )


def get_store() -> WorkspaceStore:
    """FastAPI dependency returning a store bound to the shared Motor client."""
    return WorkspaceStore(direct_mongo_client.database)
