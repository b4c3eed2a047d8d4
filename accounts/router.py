import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

import constants
from accounts.models import AuthResponse, LoginRequest, RegisterRequest
from accounts.service import AccountService
from mongo.store import WorkspaceStore, get_store
from rbac import Identity, WorkspaceError, Unexpected, get_current_user
from users.models import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_account_service(store: Annotated[WorkspaceStore, Depends(get_store)]) -> AccountService:
    return AccountService(
        store,
        secret=constants.JWT_SECRET,
        algorithm=constants.JWT_ALGORITHM,
        expires_minutes=constants.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(req: RegisterRequest, service: Annotated[AccountService, Depends(get_account_service)]):
    try:
        return await service.register(req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error registering user: {e}", exc_info=True)
        raise Unexpected("Error registering user", error=str(e))


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, service: Annotated[AccountService, Depends(get_account_service)]):
    try:
        return await service.login(req)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error logging in: {e}", exc_info=True)
        raise Unexpected("Error logging in", error=str(e))


@router.get("/me", response_model=UserResponse)
async def me(
    identity: Annotated[Identity, Depends(get_current_user)],
    service: Annotated[AccountService, Depends(get_account_service)],
):
    try:
        return await service.me(identity)
    except WorkspaceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching current user: {e}", exc_info=True)
        raise Unexpected("Error fetching user", error=str(e))
