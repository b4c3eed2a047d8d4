#!/usr/bin/env python3
"""
Project lifecycle: create, list, get, update, status transition and delete.

Every operation runs the gates in order (role, then field validation, then
lookup, then ownership) and stops at the first failure.
"""

import logging
from typing import Any, Dict, List

from mongo.constants import canonical_id, to_object_id
from mongo.store import WorkspaceStore
from projects.models import (
    ProjectCreateRequest,
    ProjectResponse,
    ProjectStatus,
    ProjectUpdateRequest,
    StatusUpdateRequest,
)
from rbac.errors import NotFound
from rbac.filters import project_tasks_filter, project_visibility_filter
from rbac.permissions import Identity
from rbac.policies import Action, check_role, ensure_permitted, filter_permitted
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


class ProjectService:
    def __init__(self, store: WorkspaceStore):
        self.store = store

    async def present_many(self, docs: List[Dict[str, Any]]) -> List[ProjectResponse]:
        """Populate creator and team member summaries in one user lookup."""
        user_ids = []
        for doc in docs:
            user_ids.append(doc.get("createdBy"))
            user_ids.extend(doc.get("teamMembers") or [])
        summaries = await user_summaries(self.store, user_ids)

        responses = []
        for doc in docs:
            creator = canonical_id(doc.get("createdBy"))
            responses.append(ProjectResponse(
                id=canonical_id(doc["_id"]),
                name=doc.get("name", ""),
                description=doc.get("description", ""),
                status=ProjectStatus(doc.get("status", ProjectStatus.PLANNING.value)),
                createdBy=summaries[creator],
                teamMembers=[summaries[canonical_id(m)] for m in doc.get("teamMembers") or []],
                createdAt=doc.get("createdAt"),
                updatedAt=doc.get("updatedAt"),
            ))
        return responses

    async def present(self, doc: Dict[str, Any]) -> ProjectResponse:
        return (await self.present_many([doc]))[0]

    async def load(self, project_id: str) -> Dict[str, Any]:
        oid = parse_path_id(project_id, "Project")
        project = await self.store.find_project(oid)
        if not project:
            raise NotFound("Project not found")
        return project

    async def create(self, identity: Identity, req: ProjectCreateRequest) -> ProjectResponse:
        check_role(identity, Action.PROJECT_CREATE)

        violations = []
        require_fields(req.model_dump(), ["name", "description"], violations)
        team = parse_id_list(req.teamMembers, "teamMembers", violations)
        raise_if_invalid(violations)

        now = utcnow()
        doc = {
            "name": clean_text(req.name),
            "description": clean_text(req.description),
            "status": ProjectStatus.PLANNING.value,
            "createdBy": to_object_id(identity.id),
            "teamMembers": team,
            "createdAt": now,
            "updatedAt": now,
        }
        project = await self.store.insert_project(doc)
        logger.info(f"Project {canonical_id(project['_id'])} created by {identity.id}")
        return await self.present(project)

    async def list_visible(self, identity: Identity) -> List[ProjectResponse]:
        docs = await self.store.find_projects(project_visibility_filter(identity))
        return await self.present_many(filter_permitted(identity, Action.PROJECT_VIEW, docs, "project"))

    async def get(self, identity: Identity, project_id: str) -> ProjectResponse:
        project = await self.load(project_id)
        ensure_permitted(identity, Action.PROJECT_VIEW, project=project)
        return await self.present(project)

    async def update(self, identity: Identity, project_id: str, req: ProjectUpdateRequest) -> ProjectResponse:
        check_role(identity, Action.PROJECT_UPDATE)

        supplied = req.model_dump(exclude_unset=True)
        violations = []
        reject_blank(supplied, ["name", "description"], violations)
        fields: Dict[str, Any] = {}
        if supplied.get("name") is not None:
            fields["name"] = clean_text(supplied["name"])
        if supplied.get("description") is not None:
            fields["description"] = clean_text(supplied["description"])
        if "teamMembers" in supplied:
            fields["teamMembers"] = parse_id_list(supplied["teamMembers"], "teamMembers", violations)
        raise_if_invalid(violations)

        project = await self.load(project_id)
        ensure_permitted(identity, Action.PROJECT_UPDATE, project=project)

        fields["updatedAt"] = utcnow()
        updated = await self.store.update_project(project["_id"], fields)
        if not updated:
            raise NotFound("Project not found")
        return await self.present(updated)

    async def set_status(self, identity: Identity, project_id: str, req: StatusUpdateRequest) -> ProjectResponse:
        check_role(identity, Action.PROJECT_STATUS)
        new_status = parse_enum(ProjectStatus, req.status)

        project = await self.load(project_id)
        ensure_permitted(identity, Action.PROJECT_STATUS, project=project)

        updated = await self.store.update_project(
            project["_id"], {"status": new_status.value, "updatedAt": utcnow()}
        )
        if not updated:
            raise NotFound("Project not found")
        return await self.present(updated)

    async def delete(self, identity: Identity, project_id: str) -> int:
        """Delete a project and its tasks. Returns the number of tasks removed."""
        check_role(identity, Action.PROJECT_DELETE)

        project = await self.load(project_id)
        ensure_permitted(identity, Action.PROJECT_DELETE, project=project)

        return await self._delete_cascade(project)

    async def _delete_cascade(self, project: Dict[str, Any]) -> int:
        """Remove the tasks, then the project.

        The tasks are snapshotted first; if either delete fails the snapshot is
        written back and the error propagates, so a failed delete never leaves
        a live project without its tasks. A project delete that errors after
        the server applied it leaves the project gone; the tasks then stay
        deleted rather than coming back as orphans.
        """
        project_name = canonical_id(project["_id"])
        task_query = project_tasks_filter(project["_id"])
        snapshot = await self.store.find_tasks(task_query)
        try:
            removed = await self.store.delete_tasks(task_query)
            await self.store.delete_project(project["_id"])
        except Exception:
            logger.error(f"Deleting project {project_name} failed", exc_info=True)
            await self._restore_if_project_exists(project, snapshot)
            raise

        logger.info(f"Project {project_name} deleted with {removed} task(s)")
        return removed

    async def _restore_if_project_exists(self, project: Dict[str, Any], snapshot: List[Dict[str, Any]]) -> None:
        project_name = canonical_id(project["_id"])
        try:
            still_there = await self.store.find_project(project["_id"]) is not None
        except Exception:
            # Cannot tell; losing tasks of a live project is the worse outcome
            logger.error(f"Could not re-check project {project_name} before restore", exc_info=True)
            still_there = True

        if not still_there:
            logger.warning(
                f"Project {project_name} was deleted despite the error; not restoring {len(snapshot)} task(s)"
            )
            return

        logger.info(f"Restoring {len(snapshot)} task(s) of project {project_name}")
        try:
            await self.store.restore_tasks(snapshot)
        except Exception:
            logger.critical(f"Task restore for project {project_name} failed", exc_info=True)
