#!/usr/bin/env python3
"""
RBAC Query Filters - restrict MongoDB list queries to what the caller may see

These mirror the instance policies in ``rbac.policies`` so that list
endpoints never return documents a GetById on the same document would refuse.
"""

from typing import Any, Dict
import logging

from bson import ObjectId

from mongo.constants import to_object_id
from rbac.permissions import Identity

logger = logging.getLogger(__name__)

# Matches nothing; used when the caller's id cannot be expressed as an ObjectId
NO_MATCH: Dict[str, Any] = {"_id": {"$exists": False}}


def _caller_oid(identity: Identity) -> ObjectId | None:
    try:
        return to_object_id(identity.id)
    except ValueError:
        logger.warning(f"RBAC: identity id {identity.id!r} is not an ObjectId; denying list access")
        return None


def project_visibility_filter(identity: Identity) -> Dict[str, Any]:
    """Projects the caller created or is a team member of."""
    oid = _caller_oid(identity)
    if oid is None:
        return dict(NO_MATCH)
    return {"$or": [{"createdBy": oid}, {"teamMembers": oid}]}


def event_visibility_filter(identity: Identity) -> Dict[str, Any]:
    """Public events plus the caller's own."""
    oid = _caller_oid(identity)
    if oid is None:
        return {"isPublic": True}
    return {"$or": [{"isPublic": True}, {"createdBy": oid}]}


def assigned_tasks_filter(identity: Identity) -> Dict[str, Any]:
    """Tasks whose ``assignedTo`` contains the caller."""
    oid = _caller_oid(identity)
    if oid is None:
        return dict(NO_MATCH)
    return {"assignedTo": oid}


def project_tasks_filter(project_id: ObjectId) -> Dict[str, Any]:
    """All tasks of a project. Access to the project is checked by the caller."""
    return {"projectId": project_id}
