import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from mongo.store import WorkspaceStore, get_store
from projects.models import (
    MessageResponse,
    ProjectCreateRequest,
    ProjectResponse,
    ProjectUpdateRequest,
    StatusUpdateRequest,
)
from projects.service import ProjectService
from rbac import Identity, WorkspaceError, Unexpected, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def get_project_service(store: Annotated[WorkspaceStore, Depends(get_store)]) -> ProjectService:
    return ProjectService(store)


Caller = Annotated[Identity, Depends(get_current_user)]
Service = Annotated[ProjectService, Depends(get_project_service)]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(req: ProjectCreateRequest, identity: Caller, service: Service):
    """Create a project (project managers only). The caller becomes its owner."""
    try:
        return await service.create(identity, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error creating project: {e}", exc_info=True)
        raise Unexpected("Error creating project", error=str(e))


@router.get("", response_model=List[ProjectResponse])
async def list_projects(identity: Caller, service: Service):
    """Projects the caller created or is a team member of, newest first."""
    try:
        return await service.list_visible(identity)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching projects: {e}", exc_info=True)
        raise Unexpected("Error fetching projects", error=str(e))


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, identity: Caller, service: Service):
    try:
        return await service.get(identity, project_id)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching project {project_id}: {e}", exc_info=True)
        raise Unexpected("Error fetching project", error=str(e))


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: str, req: ProjectUpdateRequest, identity: Caller, service: Service):
    """Update name, description or team members (owner only)."""
    try:
        return await service.update(identity, project_id, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error updating project {project_id}: {e}", exc_info=True)
        raise Unexpected("Error updating project", error=str(e))


@router.patch("/{project_id}/status", response_model=ProjectResponse)
async def update_project_status(project_id: str, req: StatusUpdateRequest, identity: Caller, service: Service):
    try:
        return await service.set_status(identity, project_id, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error updating project status {project_id}: {e}", exc_info=True)
        raise Unexpected("Error updating project status", error=str(e))


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(project_id: str, identity: Caller, service: Service):
    """Delete a project together with all of its tasks (owner only)."""
    try:
        await service.delete(identity, project_id)
        return MessageResponse(message="Project deleted successfully")
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error deleting project {project_id}: {e}", exc_info=True)
        raise Unexpected("Error deleting project", error=str(e))
