"""User account route handlers (admin only)."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database.db import get_db_session
from backend.services import user_service
from backend.services.errors import NotFoundError
from backend.api.auth_dependencies import require_admin
from backend.api.routes.auth import to_user_response
from backend.models.schemas import CreateUserRequest, UpdateUserRequest, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/users", response_model=List[UserResponse])
async def list_users(
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """List all user accounts."""
    try:
        users = await user_service.list_users(session)
        return [to_user_response(user) for user in users]
    except Exception as e:
        logger.error(f"Error loading users: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error loading users: {str(e)}")


@router.get("/api/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return to_user_response(user)


@router.post("/api/users", response_model=UserResponse, status_code=201)
async def create_user(
    payload: CreateUserRequest,
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a user account with a role and optional managed team."""
    try:
        user = await user_service.create_user(
            session,
            username=payload.username,
            password=payload.password,
            role=payload.role,
            team_id=payload.team_id,
        )
        return to_user_response(user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating user: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating user: {str(e)}")


@router.put("/api/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UpdateUserRequest,
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a user. Sending "team_id": null removes the team."""
    try:
        fields = payload.model_dump(exclude_unset=True)
        user = await user_service.update_user(
            session,
            user_id,
            username=fields.get("username"),
            password=fields.get("password"),
            role=fields.get("role"),
            team_id=fields.get("team_id"),
            clear_team="team_id" in fields and fields["team_id"] is None,
        )
        return to_user_response(user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating user: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating user: {str(e)}")


@router.delete("/api/users/{user_id}")
async def delete_user(
    user_id: int,
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    if user_id == current_user["id"]:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    try:
        deleted = await user_service.delete_user(session, user_id)
    except Exception as e:
        logger.error(f"Error deleting user: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting user: {str(e)}")
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "User deleted"}
