"""
Authentication dependencies for FastAPI routes.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from backend.services import auth_service, user_service
from backend.database.db import get_db_session
from backend.database.models import UserRole

security = HTTPBearer()

EDITOR_ROLES = (UserRole.ADMIN.value, UserRole.LEAGUE_MANAGER.value, UserRole.TEAM_MANAGER.value)
DELETE_ROLES = (UserRole.ADMIN.value, UserRole.LEAGUE_MANAGER.value)
ALL_TEAMS_ROLES = (UserRole.ADMIN.value, UserRole.LEAGUE_MANAGER.value)


async def get_current_user(
    session: AsyncSession = Depends(get_db_session),
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        session: Database session
        credentials: HTTP Bearer token credentials

    Returns:
        User dictionary

    Raises:
        HTTPException: If token is invalid or user not found
    """
    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Role and team come from the database, not the token, so changes apply immediately
    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_user_optional(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(HTTPBearer(auto_error=False))
) -> Optional[dict]:
    """
    Optional dependency to get the current authenticated user.
    Returns None if no token is provided or token is invalid.
    """
    if credentials is None:
        return None

    try:
        return await get_current_user(session, credentials)
    except HTTPException:
        return None


def require_roles(*roles: str):
    """
    Build a dependency that only lets users with one of the given roles through.

    Usage:
        current_user: dict = Depends(require_roles("admin"))
    """
    allowed = {UserRole(role).value for role in roles}

    async def _dep(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return _dep


require_admin = require_roles(UserRole.ADMIN)
require_can_edit = require_roles(*EDITOR_ROLES)
require_can_delete = require_roles(*DELETE_ROLES)


def can_access_team(user: dict, team_id: Optional[int]) -> bool:
    """Admins and league managers see every team; team managers only their own."""
    if user.get("role") in ALL_TEAMS_ROLES:
        return True
    if user.get("role") == UserRole.TEAM_MANAGER.value:
        return team_id is not None and user.get("team_id") == team_id
    return False


def ensure_team_access(user: dict, *team_ids: Optional[int]) -> None:
    """
    Raise 403 unless the user may act on at least one of the given teams.

    A match passes both of its team IDs, so a team manager can edit any
    match their team plays in.
    """
    if not any(can_access_team(user, team_id) for team_id in team_ids):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this team")
