import logging
from typing import Any, Dict, Iterable, List

from bson import ObjectId

from mongo.constants import canonical_id, to_object_id
from mongo.store import WorkspaceStore
from rbac.permissions import Role
from users.models import UserResponse, UserSummary

logger = logging.getLogger(__name__)

VALID_ROLES = {r.value for r in Role}


async def list_users(store: WorkspaceStore) -> List[UserResponse]:
    """All users, password hashes excluded. Records with an unknown role are skipped."""
    docs = await store.find_users()
    users = []
    for doc in docs:
        if doc.get("role") not in VALID_ROLES:
            logger.warning(f"Skipping user {canonical_id(doc.get('_id'))} with unknown role {doc.get('role')!r}")
            continue
        users.append(UserResponse.from_document(doc))
    return users


async def user_summaries(store: WorkspaceStore, user_ids: Iterable[Any]) -> Dict[str, UserSummary]:
    """Map canonical user id -> summary for the given ids.

    Ids that no longer resolve get an id-only summary so callers can still
    render the reference.
    """
    wanted = {canonical_id(u) for u in user_ids if canonical_id(u)}
    if not wanted:
        return {}
    docs = await store.find_users([to_object_id(u) for u in wanted if ObjectId.is_valid(u)])
    summaries = {
        canonical_id(doc["_id"]): UserSummary(
            id=canonical_id(doc["_id"]),
            name=doc.get("name", ""),
            email=doc.get("email", ""),
        )
        for doc in docs
    }
    for user_id in wanted:
        summaries.setdefault(user_id, UserSummary(id=user_id))
    return summaries
