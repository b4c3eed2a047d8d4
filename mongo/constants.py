import os
import uuid
from typing import Any

from bson import ObjectId
from bson.binary import Binary
from bson.errors import InvalidId
from dotenv import load_dotenv
import logging

# Load environment variables from .env file
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Database configuration
DATABASE_NAME = os.getenv("MONGODB_DATABASE", "workspace")
_DEFAULT_MONGODB_URI = "mongodb://localhost:27017/workspace"


def _resolve_mongo_uri() -> str:
    """Resolve the MongoDB connection string with sane fallbacks."""
    candidates = [
        os.getenv("MONGODB_URI"),
        os.getenv("MONGODB_CONNECTION_STRING"),
    ]

    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()

    if any(candidate == "" for candidate in candidates):
        logger.warning("MONGODB connection string env var was empty; falling back to default URI.")

    return _DEFAULT_MONGODB_URI


MONGODB_CONNECTION_STRING = _resolve_mongo_uri()

# Collection names
USERS_COLLECTION = "users"
PROJECTS_COLLECTION = "projects"
TASKS_COLLECTION = "tasks"
EVENTS_COLLECTION = "events"


def canonical_id(value: Any) -> str:
    """Return the canonical string form of a document identifier.

    Accepts ObjectId, UUID, Binary UUIDs, populated documents (``{"_id": ...}``
    or ``{"id": ...}``) and plain strings, so that two references to the same
    document always compare equal as strings.
    """
    if value is None:
        return ""
    if isinstance(value, dict):
        return canonical_id(value.get("_id", value.get("id")))
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Binary) and len(value) == 16:
        return str(uuid.UUID(bytes=bytes(value)))
    if isinstance(value, bytes) and len(value) == 16:
        return str(uuid.UUID(bytes=value))
    text = str(value).strip().strip('"\'')
    if ObjectId.is_valid(text):
        return text.lower()
    return text


def to_object_id(value: Any) -> ObjectId:
    """Convert an identifier into an ObjectId.

    Raises ValueError for anything that is not a 24-hex id.
    """
    if isinstance(value, ObjectId):
        return value
    text = canonical_id(value)
    try:
        return ObjectId(text)
    except (InvalidId, TypeError) as e:
        raise ValueError(f"Invalid id format '{value}'") from e
