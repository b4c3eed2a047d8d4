#!/usr/bin/env python3
"""
MongoDB index creation for the workspace collections.
Mirrors the query patterns of the API: ownership lookups, membership
lookups and status/date filters.
"""

import asyncio
import logging
from pymongo import ASCENDING, DESCENDING

from mongo.constants import (
    USERS_COLLECTION,
    PROJECTS_COLLECTION,
    TASKS_COLLECTION,
    EVENTS_COLLECTION,
)

# Configure logging
logger = logging.getLogger(__name__)

INDEXES = {
    USERS_COLLECTION: [
        ([("email", ASCENDING)], "users_email_unique", {"unique": True}),
        ([("role", ASCENDING)], "users_role", {}),
    ],
    PROJECTS_COLLECTION: [
        ([("createdBy", ASCENDING)], "projects_created_by", {}),
        ([("teamMembers", ASCENDING)], "projects_team_members", {}),
        ([("status", ASCENDING)], "projects_status", {}),
        ([("createdAt", DESCENDING)], "projects_created_at_desc", {}),
    ],
    TASKS_COLLECTION: [
        ([("projectId", ASCENDING)], "tasks_project_id", {}),
        ([("assignedTo", ASCENDING)], "tasks_assigned_to", {}),
        ([("status", ASCENDING)], "tasks_status", {}),
    ],
    EVENTS_COLLECTION: [
        ([("createdBy", ASCENDING)], "events_created_by", {}),
        ([("eventDate", ASCENDING)], "events_event_date", {}),
        ([("isPublic", ASCENDING)], "events_is_public", {}),
    ],
}


async def create_index_if_not_exists(collection, index_spec, index_name, **options) -> bool:
    """Create index only if it doesn't already exist"""
    try:
        existing = await collection.index_information()
        if index_name in existing:
            return True
        await collection.create_index(index_spec, name=index_name, **options)
        return True
    except Exception as e:
        logger.error(f"Error creating index '{index_name}': {e}")
        return False


async def ensure_indexes(db) -> int:
    """Create all workspace indexes. Returns the number that failed."""
    failures = 0
    for collection_name, specs in INDEXES.items():
        collection = db[collection_name]
        for index_spec, index_name, options in specs:
            ok = await create_index_if_not_exists(collection, index_spec, index_name, **options)
            if not ok:
                failures += 1
    if failures:
        logger.warning(f"{failures} index(es) could not be created")
    else:
        logger.info("MongoDB indexes are in place")
    return failures


if __name__ == "__main__":
    from mongo.client import direct_mongo_client

    async def main():
        await direct_mongo_client.connect()
        try:
            await ensure_indexes(direct_mongo_client.database)
        finally:
            await direct_mongo_client.disconnect()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    asyncio.run(main())
