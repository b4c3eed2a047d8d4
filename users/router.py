import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends

from mongo.store import WorkspaceStore, get_store
from rbac import Identity, WorkspaceError, Unexpected, get_current_user
from users.models import UserResponse
from users.service import list_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
async def get_users(
    identity: Annotated[Identity, Depends(get_current_user)],
    store: Annotated[WorkspaceStore, Depends(get_store)],
):
    """List all users (for assignment in projects and tasks). Passwords are never returned."""
    try:
        return await list_users(store)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching users: {e}", exc_info=True)
        raise Unexpected("Error fetching users", error=str(e))
