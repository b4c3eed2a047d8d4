"""
Shared fixtures: an in-memory stand-in for WorkspaceStore and a handful of
seeded users, one per role.
"""

import copy
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import constants
from mongo.constants import canonical_id
from rbac.permissions import Identity, Role
from rbac.tokens import create_access_token


def _value_matches(value: Any, cond: Any) -> bool:
    if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$in":
                values = value if isinstance(value, list) else [value]
                if not any(v in arg for v in values):
                    return False
            elif op == "$ne":
                if _value_matches(value, arg):
                    return False
            else:
                raise NotImplementedError(op)
        return True
    if isinstance(value, list):
        return cond in value
    return value == cond


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the subset of MongoDB query syntax the services emit."""
    for key, cond in query.items():
        if key == "$or":
            if not any(matches(doc, q) for q in cond):
                return False
        elif key == "$and":
            if not all(matches(doc, q) for q in cond):
                return False
        elif isinstance(cond, dict) and "$exists" in cond:
            if (key in doc) != cond["$exists"]:
                return False
        elif "." in key:
            head, tail = key.split(".", 1)
            items = doc.get(head) or []
            if isinstance(cond, dict) and "$ne" in cond:
                if any(i.get(tail) == cond["$ne"] for i in items):
                    return False
            elif not any(i.get(tail) == cond for i in items):
                return False
        elif not _value_matches(doc.get(key), cond):
            return False
    return True


class InMemoryStore:
    """Dict-backed implementation of the WorkspaceStore interface."""

    def __init__(self):
        self.users: Dict[ObjectId, dict] = {}
        self.projects: Dict[ObjectId, dict] = {}
        self.tasks: Dict[ObjectId, dict] = {}
        self.events: Dict[ObjectId, dict] = {}
        self.calls: List[str] = []

    # helpers -------------------------------------------------------------

    def _insert(self, table: Dict[ObjectId, dict], doc: dict) -> dict:
        doc.setdefault("_id", ObjectId())
        table[doc["_id"]] = copy.deepcopy(doc)
        return doc

    def _find(self, table, query, sort_key=None, reverse=False) -> List[dict]:
        docs = [copy.deepcopy(d) for d in table.values() if matches(d, query)]
        if sort_key:
            docs.sort(key=lambda d: d.get(sort_key) or datetime.min.replace(tzinfo=timezone.utc), reverse=reverse)
        return docs

    def _update(self, table, oid, fields) -> Optional[dict]:
        if oid not in table:
            return None
        table[oid].update(copy.deepcopy(fields))
        return copy.deepcopy(table[oid])

    def add_user(self, name: str, email: str, role: Role, password: str = "") -> dict:
        now = datetime.now(timezone.utc)
        doc = {"name": name, "email": email, "password": password, "role": role.value,
               "createdAt": now, "updatedAt": now}
        return self._insert(self.users, doc)

    # users ---------------------------------------------------------------

    async def insert_user(self, doc):
        self.calls.append("insert_user")
        if any(u["email"] == doc["email"] for u in self.users.values()):
            raise DuplicateKeyError("E11000 duplicate key error collection: users index: users_email_unique")
        return self._insert(self.users, doc)

    async def find_user(self, user_id):
        self.calls.append("find_user")
        doc = self.users.get(user_id)
        return copy.deepcopy(doc) if doc else None

    async def find_user_by_email(self, email):
        self.calls.append("find_user_by_email")
        for doc in self.users.values():
            if doc["email"] == email:
                return copy.deepcopy(doc)
        return None

    async def find_users(self, user_ids=None):
        self.calls.append("find_users")
        query = {} if user_ids is None else {"_id": {"$in": list(user_ids)}}
        docs = self._find(self.users, query)
        for doc in docs:
            doc.pop("password", None)
        return sorted(docs, key=lambda d: d.get("name", ""))

    # projects ------------------------------------------------------------

    async def insert_project(self, doc):
        self.calls.append("insert_project")
        return self._insert(self.projects, doc)

    async def find_project(self, project_id):
        self.calls.append("find_project")
        doc = self.projects.get(project_id)
        return copy.deepcopy(doc) if doc else None

    async def find_projects(self, query):
        self.calls.append("find_projects")
        return self._find(self.projects, query, "createdAt", reverse=True)

    async def update_project(self, project_id, fields):
        self.calls.append("update_project")
        return self._update(self.projects, project_id, fields)

    async def delete_project(self, project_id):
        self.calls.append("delete_project")
        return self.projects.pop(project_id, None) is not None

    # tasks ---------------------------------------------------------------

    async def insert_task(self, doc):
        self.calls.append("insert_task")
        return self._insert(self.tasks, doc)

    async def find_task(self, task_id):
        self.calls.append("find_task")
        doc = self.tasks.get(task_id)
        return copy.deepcopy(doc) if doc else None

    async def find_tasks(self, query):
        self.calls.append("find_tasks")
        return self._find(self.tasks, query, "createdAt")

    async def update_task(self, task_id, fields):
        self.calls.append("update_task")
        return self._update(self.tasks, task_id, fields)

    async def delete_task(self, task_id):
        self.calls.append("delete_task")
        return self.tasks.pop(task_id, None) is not None

    async def delete_tasks(self, query):
        self.calls.append("delete_tasks")
        doomed = [oid for oid, doc in self.tasks.items() if matches(doc, query)]
        for oid in doomed:
            del self.tasks[oid]
        return len(doomed)

    async def restore_tasks(self, docs):
        self.calls.append("restore_tasks")
        for doc in docs:
            self.tasks[doc["_id"]] = copy.deepcopy(doc)

    # events --------------------------------------------------------------

    async def insert_event(self, doc):
        self.calls.append("insert_event")
        return self._insert(self.events, doc)

    async def find_event(self, event_id):
        self.calls.append("find_event")
        doc = self.events.get(event_id)
        return copy.deepcopy(doc) if doc else None

    async def find_events(self, query):
        self.calls.append("find_events")
        return self._find(self.events, query, "eventDate")

    async def update_event(self, event_id, fields):
        self.calls.append("update_event")
        return self._update(self.events, event_id, fields)

    async def delete_event(self, event_id):
        self.calls.append("delete_event")
        return self.events.pop(event_id, None) is not None

    async def set_rsvp(self, event_id, email, status):
        self.calls.append("set_rsvp")
        event = self.events.get(event_id)
        if event is None:
            return None
        attendees = event.setdefault("attendees", [])
        for attendee in attendees:
            if attendee["email"] == email:
                attendee["status"] = status
                break
        else:
            attendees.append({"email": email, "status": status})
        return copy.deepcopy(event)


def identity_for(user: dict) -> Identity:
    return Identity(
        id=canonical_id(user["_id"]),
        email=user["email"],
        role=Role(user["role"]),
        name=user["name"],
    )


def token_for(user: dict, **kwargs) -> str:
    return create_access_token(
        user_id=canonical_id(user["_id"]),
        secret=constants.JWT_SECRET,
        algorithm=constants.JWT_ALGORITHM,
        **kwargs,
    )


def auth_header(user: dict) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def users(store):
    """One user per role plus a second manager and a second team member."""
    return {
        "manager": store.add_user("Ada Manager", "ada@example.com", Role.PROJECT_MANAGER),
        "other_manager": store.add_user("Otto Manager", "otto@example.com", Role.PROJECT_MANAGER),
        "member": store.add_user("Bea Member", "bea@example.com", Role.TEAM_MEMBER),
        "outsider": store.add_user("Finn Outsider", "finn@example.com", Role.TEAM_MEMBER),
        "organizer": store.add_user("Eve Organizer", "eve@example.com", Role.EVENT_ORGANIZER),
    }


@pytest.fixture
def ids(users):
    return {key: identity_for(user) for key, user in users.items()}


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient

    from main import app
    from mongo.store import get_store

    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
