"""
Task lifecycle. Access to a task is derived from its parent project: the
project's creator manages tasks, the creator and team members see them, and
assignees may additionally move a task's status.
"""

import logging
from typing import Any, Dict, List, Tuple

from mongo.constants import canonical_id, to_object_id
from mongo.store import WorkspaceStore
from rbac.errors import InvalidInput, NotFound
from rbac.filters import assigned_tasks_filter, project_tasks_filter
from rbac.permissions import Identity
from rbac.policies import Action, check_role, ensure_permitted
from tasks.models import (
    TaskCreateRequest,
    TaskPriority,
    TaskResponse,
    TaskStatus,
    TaskStatusRequest,
    TaskUpdateRequest,
)
from users.service import user_summaries
from validation import (
    clean_text,
    parse_enum,
    parse_id_list,
    parse_path_id,
    raise_if_invalid,
    reject_blank,
    require_fields,
    utcnow,
)

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, store: WorkspaceStore):
        self.store = store

    async def present_many(self, docs: List[Dict[str, Any]]) -> List[TaskResponse]:
        assignees = [a for doc in docs for a in (doc.get("assignedTo") or [])]
        summaries = await user_summaries(self.store, assignees)
        return [
            TaskResponse(
                id=canonical_id(doc["_id"]),
                title=doc.get("title", ""),
                description=doc.get("description", ""),
                projectId=canonical_id(doc.get("projectId")),
                assignedTo=[summaries[canonical_id(a)] for a in doc.get("assignedTo") or []],
                status=TaskStatus(doc.get("status", TaskStatus.TODO.value)),
                priority=TaskPriority(doc.get("priority", TaskPriority.MEDIUM.value)),
                dueDate=doc.get("dueDate"),
                createdAt=doc.get("createdAt"),
            )
            for doc in docs
        ]

    async def present(self, doc: Dict[str, Any]) -> TaskResponse:
        return (await self.present_many([doc]))[0]

    async def load_project(self, project_id: str) -> Dict[str, Any]:
        project = await self.store.find_project(parse_path_id(project_id, "Project"))
        if not project:
            raise NotFound("Project not found")
        return project

    async def load_with_project(self, task_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        task = await self.store.find_task(parse_path_id(task_id, "Task"))
        if not task:
            raise NotFound("Task not found")
        project = await self.store.find_project(task.get("projectId"))
        if not project:
            raise NotFound("Associated project not found")
        return task, project

    async def create(self, identity: Identity, req: TaskCreateRequest) -> TaskResponse:
        check_role(identity, Action.TASK_CREATE)

        violations = []
        require_fields(req.model_dump(), ["title", "description", "projectId", "dueDate"], violations)
        assigned = parse_id_list(req.assignedTo, "assignedTo", violations)
        project_oid = None
        if req.projectId and req.projectId.strip():
            try:
                project_oid = to_object_id(req.projectId)
            except ValueError:
                violations.append({"field": "projectId", "message": "Project ID is invalid"})
        raise_if_invalid(violations)
        priority = TaskPriority.MEDIUM
        if req.priority is not None:
            priority = parse_enum(TaskPriority, req.priority, field="priority", message="Invalid priority")

        project = await self.store.find_project(project_oid)
        if not project:
            raise NotFound("Project not found")
        ensure_permitted(identity, Action.TASK_CREATE, project=project)

        doc = {
            "title": clean_text(req.title),
            "description": clean_text(req.description),
            "projectId": project["_id"],
            "assignedTo": assigned,
            "status": TaskStatus.TODO.value,
            "priority": priority.value,
            "dueDate": req.dueDate,
            "createdAt": utcnow(),
        }
        task = await self.store.insert_task(doc)
        logger.info(f"Task {canonical_id(task['_id'])} created in project {canonical_id(project['_id'])}")
        return await self.present(task)

    async def list_for_project(self, identity: Identity, project_id: str) -> List[TaskResponse]:
        project = await self.load_project(project_id)
        ensure_permitted(identity, Action.TASK_LIST, project=project)
        docs = await self.store.find_tasks(project_tasks_filter(project["_id"]))
        return await self.present_many(docs)

    async def list_assigned(self, identity: Identity) -> List[TaskResponse]:
        docs = await self.store.find_tasks(assigned_tasks_filter(identity))
        return await self.present_many(docs)

    async def get(self, identity: Identity, task_id: str) -> TaskResponse:
        task, project = await self.load_with_project(task_id)
        ensure_permitted(identity, Action.TASK_VIEW, project=project, task=task)
        return await self.present(task)

    async def set_status(self, identity: Identity, task_id: str, req: TaskStatusRequest) -> TaskResponse:
        check_role(identity, Action.TASK_STATUS)
        new_status = parse_enum(TaskStatus, req.status)

        task, project = await self.load_with_project(task_id)
        ensure_permitted(identity, Action.TASK_STATUS, project=project, task=task)

        updated = await self.store.update_task(task["_id"], {"status": new_status.value})
        if not updated:
            raise NotFound("Task not found")
        return await self.present(updated)

    async def update(self, identity: Identity, task_id: str, req: TaskUpdateRequest) -> TaskResponse:
        check_role(identity, Action.TASK_UPDATE)

        supplied = req.model_dump(exclude_unset=True)
        violations = []
        reject_blank(supplied, ["title", "description"], violations)
        fields: Dict[str, Any] = {}
        for key in ("title", "description"):
            if supplied.get(key) is not None:
                fields[key] = clean_text(supplied[key])
        if "assignedTo" in supplied:
            fields["assignedTo"] = parse_id_list(supplied["assignedTo"], "assignedTo", violations)
        if supplied.get("dueDate") is not None:
            fields["dueDate"] = supplied["dueDate"]
        raise_if_invalid(violations)
        if supplied.get("priority") is not None:
            fields["priority"] = parse_enum(
                TaskPriority, supplied["priority"], field="priority", message="Invalid priority"
            ).value
        if supplied.get("status") is not None:
            fields["status"] = parse_enum(TaskStatus, supplied["status"]).value

        task, project = await self.load_with_project(task_id)
        ensure_permitted(identity, Action.TASK_UPDATE, project=project, task=task)

        requested_project = supplied.get("projectId")
        if requested_project and canonical_id(requested_project) != canonical_id(task.get("projectId")):
            raise InvalidInput(
                "Validation failed",
                errors=[{"field": "projectId", "message": "A task cannot be moved to another project"}],
            )

        if not fields:
            return await self.present(task)
        updated = await self.store.update_task(task["_id"], fields)
        if not updated:
            raise NotFound("Task not found")
        return await self.present(updated)

    async def delete(self, identity: Identity, task_id: str) -> None:
        check_role(identity, Action.TASK_DELETE)

        task, project = await self.load_with_project(task_id)
        ensure_permitted(identity, Action.TASK_DELETE, project=project, task=task)

        await self.store.delete_task(task["_id"])
        logger.info(f"Task {canonical_id(task['_id'])} deleted by {identity.id}")
