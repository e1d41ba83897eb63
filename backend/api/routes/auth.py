"""Authentication route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.routes import limiter, INVALID_CREDENTIALS_RESPONSE
from backend.database.db import get_db_session
from backend.services import auth_service, user_service
from backend.api.auth_dependencies import get_current_user
from backend.models.schemas import LoginRequest, AuthResponse, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def to_user_response(user: dict) -> UserResponse:
    """Strip the password hash from a user dict."""
    return UserResponse(
        id=user["id"],
        username=user["username"],
        role=user["role"],
        team_id=user.get("team_id"),
        created_at=user.get("created_at"),
    )


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit("10/minute")
async def login(
    request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)
):
    """
    Login with username and password.

    Returns a bearer token carrying the user's id, role and team.
    """
    try:
        user = await user_service.authenticate_user(session, payload.username, payload.password)
        if user is None:
            logger.info(f"Failed login attempt for {payload.username}")
            raise INVALID_CREDENTIALS_RESPONSE

        access_token = auth_service.create_access_token(
            data={"user_id": user["id"], "role": user["role"], "team_id": user["team_id"]}
        )
        return AuthResponse(access_token=access_token, user=to_user_response(user))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during login: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error during login: {str(e)}")


@router.get("/api/auth/me", response_model=UserResponse)
async def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Get current authenticated user information."""
    return to_user_response(current_user)
