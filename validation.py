"""Field validation helpers shared by the resource services."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from bson import ObjectId

from mongo.constants import to_object_id
from rbac.errors import InvalidInput, NotFound

E = TypeVar("E", bound=Enum)

Violations = List[Dict[str, str]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _label(field: str) -> str:
    # "projectId" -> "Project ID", "eventDate" -> "Event date"
    words = []
    current = ""
    for ch in field:
        if ch.isupper() and current:
            words.append(current)
            current = ch.lower()
        else:
            current += ch
    words.append(current)
    text = " ".join(words)
    text = text.replace(" id", " ID")
    return text[:1].upper() + text[1:]


def clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def require_fields(values: Mapping[str, Any], fields: Iterable[str], violations: Violations) -> None:
    """Record a violation for every field that is missing or blank."""
    for field in fields:
        value = values.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            violations.append({"field": field, "message": f"{_label(field)} is required"})


def reject_blank(values: Mapping[str, Any], fields: Iterable[str], violations: Violations) -> None:
    """For partial updates: supplied text fields may not be blank."""
    for field in fields:
        value = values.get(field)
        if isinstance(value, str) and not value.strip():
            violations.append({"field": field, "message": f"{_label(field)} cannot be empty"})


def parse_id_list(values: Optional[Iterable[Any]], field: str, violations: Violations) -> List[ObjectId]:
    """Parse a list of user ids, collapsing duplicates and keeping order."""
    result: List[ObjectId] = []
    for raw in values or []:
        try:
            oid = to_object_id(raw)
        except ValueError:
            violations.append({"field": field, "message": f"Invalid user id: {raw}"})
            continue
        if oid not in result:
            result.append(oid)
    return result


def parse_enum(enum_cls: Type[E], value: Any, *, field: str = "status", message: str = "Invalid status") -> E:
    """Parse ``value`` into ``enum_cls`` or fail with InvalidInput."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise InvalidInput(
            message,
            errors=[{"field": field, "message": f"Must be one of: {allowed}"}],
        )


def parse_path_id(value: str, resource: str) -> ObjectId:
    """Path ids that are not valid ObjectIds cannot resolve, so they are NotFound."""
    try:
        return to_object_id(value)
    except ValueError:
        raise NotFound(f"{resource} not found")


def raise_if_invalid(violations: Violations) -> None:
    if violations:
        raise InvalidInput("Validation failed", errors=violations)
