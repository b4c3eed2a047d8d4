#!/usr/bin/env python3
"""
Ownership / membership policies.

Each action a caller can take on a workspace resource is bound to the roles
allowed to attempt it and to exactly one instance-level policy. Actions that
need no ownership check carry ``Policy.ANY_AUTHENTICATED`` explicitly.

All identifier comparisons go through ``mongo.constants.canonical_id`` on
both sides.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from mongo.constants import canonical_id
from rbac.auth import require_role
from rbac.errors import Forbidden
from rbac.permissions import Identity, Role

Document = Dict[str, Any]


class Action(str, Enum):
    PROJECT_CREATE = "project:create"
    PROJECT_VIEW = "project:view"
    PROJECT_UPDATE = "project:update"
    PROJECT_STATUS = "project:status"
    PROJECT_DELETE = "project:delete"
    TASK_CREATE = "task:create"
    TASK_LIST = "task:list"
    TASK_VIEW = "task:view"
    TASK_STATUS = "task:status"
    TASK_UPDATE = "task:update"
    TASK_DELETE = "task:delete"
    EVENT_CREATE = "event:create"
    EVENT_VIEW = "event:view"
    EVENT_UPDATE = "event:update"
    EVENT_DELETE = "event:delete"
    EVENT_RSVP = "event:rsvp"


class Policy(str, Enum):
    ANY_AUTHENTICATED = "any-authenticated"
    CREATOR_ONLY = "creator-only"
    CREATOR_OR_MEMBER = "creator-or-member"
    PUBLIC_OR_CREATOR = "public-or-creator"
    PROJECT_CREATOR = "project-creator"
    PROJECT_CREATOR_OR_MEMBER = "project-creator-or-member"
    PROJECT_CREATOR_MEMBER_OR_ASSIGNEE = "project-creator-member-or-assignee"


@dataclass(frozen=True)
class Rule:
    roles: Optional[FrozenSet[Role]]  # None: any role
    policy: Policy
    denial: str


_PM = frozenset({Role.PROJECT_MANAGER})
_EO = frozenset({Role.EVENT_ORGANIZER})

ACTION_RULES: Dict[Action, Rule] = {
    Action.PROJECT_CREATE: Rule(_PM, Policy.ANY_AUTHENTICATED, "Not authorized to create projects"),
    Action.PROJECT_VIEW: Rule(None, Policy.CREATOR_OR_MEMBER, "Not authorized to view this project"),
    Action.PROJECT_UPDATE: Rule(_PM, Policy.CREATOR_ONLY, "Not authorized to update this project"),
    Action.PROJECT_STATUS: Rule(_PM, Policy.CREATOR_ONLY, "Not authorized to update this project status"),
    Action.PROJECT_DELETE: Rule(_PM, Policy.CREATOR_ONLY, "Not authorized to delete this project"),
    Action.TASK_CREATE: Rule(_PM, Policy.PROJECT_CREATOR, "Not authorized to create tasks for this project"),
    Action.TASK_LIST: Rule(None, Policy.PROJECT_CREATOR_OR_MEMBER, "Not authorized to view tasks for this project"),
    Action.TASK_VIEW: Rule(None, Policy.PROJECT_CREATOR_MEMBER_OR_ASSIGNEE, "Not authorized to view this task"),
    Action.TASK_STATUS: Rule(None, Policy.PROJECT_CREATOR_MEMBER_OR_ASSIGNEE, "Not authorized to update this task status"),
    Action.TASK_UPDATE: Rule(_PM, Policy.PROJECT_CREATOR, "Not authorized to update this task"),
    Action.TASK_DELETE: Rule(_PM, Policy.PROJECT_CREATOR, "Not authorized to delete this task"),
    Action.EVENT_CREATE: Rule(_EO, Policy.ANY_AUTHENTICATED, "Not authorized to create events"),
    Action.EVENT_VIEW: Rule(None, Policy.PUBLIC_OR_CREATOR, "Not authorized to view this event"),
    Action.EVENT_UPDATE: Rule(_EO, Policy.CREATOR_ONLY, "Not authorized to update this event"),
    Action.EVENT_DELETE: Rule(_EO, Policy.CREATOR_ONLY, "Not authorized to delete this event"),
    Action.EVENT_RSVP: Rule(None, Policy.ANY_AUTHENTICATED, "Not authorized to RSVP to this event"),
}


# ----------------------------------------------------------------------
# Relationship predicates
# ----------------------------------------------------------------------

def same_id(left: Any, right: Any) -> bool:
    a = canonical_id(left)
    return bool(a) and a == canonical_id(right)


def id_in(target: Any, ids: Optional[Iterable[Any]]) -> bool:
    wanted = canonical_id(target)
    if not wanted:
        return False
    return any(canonical_id(i) == wanted for i in (ids or []))


def is_creator(user_id: str, resource: Document) -> bool:
    return same_id(user_id, resource.get("createdBy"))


def is_team_member(user_id: str, project: Document) -> bool:
    return id_in(user_id, project.get("teamMembers"))


def is_assignee(user_id: str, task: Document) -> bool:
    return id_in(user_id, task.get("assignedTo"))


def can_view_project(user_id: str, project: Document) -> bool:
    return is_creator(user_id, project) or is_team_member(user_id, project)


def can_mutate_project(user_id: str, project: Document) -> bool:
    return is_creator(user_id, project)


def can_set_task_status(user_id: str, task: Document, project: Document) -> bool:
    return (
        is_creator(user_id, project)
        or is_team_member(user_id, project)
        or is_assignee(user_id, task)
    )


def can_view_event(user_id: str, event: Document) -> bool:
    return event.get("isPublic") is True or is_creator(user_id, event)


def _needs(resource: Optional[Document], kind: str, policy: Policy) -> Document:
    if resource is None:
        raise ValueError(f"Policy {policy.value} needs the {kind} document")
    return resource


def evaluate_policy(
    policy: Policy,
    user_id: str,
    *,
    project: Optional[Document] = None,
    task: Optional[Document] = None,
    event: Optional[Document] = None,
) -> bool:
    if policy is Policy.ANY_AUTHENTICATED:
        return True
    if policy is Policy.CREATOR_ONLY:
        owned = project if project is not None else _needs(event, "project or event", policy)
        return is_creator(user_id, owned)
    if policy is Policy.PUBLIC_OR_CREATOR:
        return can_view_event(user_id, _needs(event, "event", policy))
    if policy in (Policy.CREATOR_OR_MEMBER, Policy.PROJECT_CREATOR_OR_MEMBER):
        return can_view_project(user_id, _needs(project, "project", policy))
    if policy is Policy.PROJECT_CREATOR:
        return can_mutate_project(user_id, _needs(project, "project", policy))
    if policy is Policy.PROJECT_CREATOR_MEMBER_OR_ASSIGNEE:
        return can_set_task_status(
            user_id,
            _needs(task, "task", policy),
            _needs(project, "project", policy),
        )
    # Unknown policies deny
    return False


def check_role(identity: Optional[Identity], action: Action) -> Identity:
    """Role gate for ``action``. Runs before any document is loaded."""
    return require_role(identity, ACTION_RULES[action].roles)


def is_permitted(
    identity: Identity,
    action: Action,
    *,
    project: Optional[Document] = None,
    task: Optional[Document] = None,
    event: Optional[Document] = None,
) -> bool:
    """Instance-level decision for an already loaded resource."""
    rule = ACTION_RULES[action]
    return evaluate_policy(rule.policy, identity.id, project=project, task=task, event=event)


def ensure_permitted(
    identity: Identity,
    action: Action,
    *,
    project: Optional[Document] = None,
    task: Optional[Document] = None,
    event: Optional[Document] = None,
) -> None:
    if not is_permitted(identity, action, project=project, task=task, event=event):
        raise Forbidden(ACTION_RULES[action].denial)


def filter_permitted(identity: Identity, action: Action, documents: List[Document], kind: str) -> List[Document]:
    """Keep the documents ``identity`` may act on. ``kind`` is 'project' or 'event'."""
    return [doc for doc in documents if is_permitted(identity, action, **{kind: doc})]
