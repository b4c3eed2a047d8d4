import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from mongo.store import WorkspaceStore, get_store
from projects.models import MessageResponse
from rbac import Identity, WorkspaceError, Unexpected, get_current_user
from tasks.models import TaskCreateRequest, TaskResponse, TaskStatusRequest, TaskUpdateRequest
from tasks.service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(store: Annotated[WorkspaceStore, Depends(get_store)]) -> TaskService:
    return TaskService(store)


Caller = Annotated[Identity, Depends(get_current_user)]
Service = Annotated[TaskService, Depends(get_task_service)]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(req: TaskCreateRequest, identity: Caller, service: Service):
    """Create a task in a project the caller owns (project managers only)."""
    try:
        return await service.create(identity, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error creating task: {e}", exc_info=True)
        raise Unexpected("Error creating task", error=str(e))


@router.get("/project/{project_id}", response_model=List[TaskResponse])
async def list_project_tasks(project_id: str, identity: Caller, service: Service):
    """Tasks of a project, for its creator and team members."""
    try:
        return await service.list_for_project(identity, project_id)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching tasks for project {project_id}: {e}", exc_info=True)
        raise Unexpected("Error fetching tasks for project", error=str(e))


@router.get("/my", response_model=List[TaskResponse])
async def list_my_tasks(identity: Caller, service: Service):
    """Tasks assigned to the caller."""
    try:
        return await service.list_assigned(identity)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching my tasks: {e}", exc_info=True)
        raise Unexpected("Error fetching my tasks", error=str(e))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, identity: Caller, service: Service):
    try:
        return await service.get(identity, task_id)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching task {task_id}: {e}", exc_info=True)
        raise Unexpected("Error fetching task", error=str(e))


@router.put("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(task_id: str, req: TaskStatusRequest, identity: Caller, service: Service):
    """Move a task to another status (project creator, team members, assignees)."""
    try:
        return await service.set_status(identity, task_id, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error updating task status {task_id}: {e}", exc_info=True)
        raise Unexpected("Error updating task status", error=str(e))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: str, req: TaskUpdateRequest, identity: Caller, service: Service):
    try:
        return await service.update(identity, task_id, req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error updating task {task_id}: {e}", exc_info=True)
        raise Unexpected("Error updating task", error=str(e))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: str, identity: Caller, service: Service):
    try:
        await service.delete(identity, task_id)
        return MessageResponse(message="Task deleted successfully")
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error deleting task {task_id}: {e}", exc_info=True)
        raise Unexpected("Error deleting task", error=str(e))
