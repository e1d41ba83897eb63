"""
User service layer for user account database operations.
"""

from typing import Optional, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from backend.database.models import User, UserRole, Team
from backend.services import auth_service
from backend.services.errors import NotFoundError, DuplicateError
import logging

logger = logging.getLogger(__name__)


def _user_to_dict(user: User) -> Dict:
    """
    Convert a User ORM instance to a dictionary.

    Args:
        user: User ORM instance

    Returns:
        User dictionary (includes password_hash; never return it from a route)
    """
    role = user.role.value if isinstance(user.role, UserRole) else user.role
    return {
        "id": user.id,
        "username": user.username,
        "password_hash": user.password_hash,
        "role": role,
        "team_id": user.team_id,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


async def _ensure_team_exists(session: AsyncSession, team_id: Optional[int]) -> None:
    if team_id is None:
        return
    if await session.get(Team, team_id) is None:
        raise NotFoundError(f"Team {team_id} not found")


async def create_user(
    session: AsyncSession,
    username: str,
    password: str,
    role: UserRole = UserRole.OBSERVER,
    team_id: Optional[int] = None,
) -> Dict:
    """
    Create a new user account.

    Args:
        session: Database session
        username: Unique login name
        password: Plaintext password (hashed before storage)
        role: User role
        team_id: Team managed by the user (team managers)

    Returns:
        Created user dictionary

    Raises:
        DuplicateError: If the username is already taken
        NotFoundError: If team_id does not reference a team
    """
    result = await session.execute(select(User.id).where(User.username == username))
    if result.scalar_one_or_none():
        raise DuplicateError(f"Username {username} already exists")
    await _ensure_team_exists(session, team_id)

    user = User(
        username=username,
        password_hash=auth_service.hash_password(password),
        role=UserRole(role),
        team_id=team_id,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Created user {username} with role {user.role.value}")
    return _user_to_dict(user)


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[Dict]:
    """Get user by username, or None if not found."""
    result = await session.execute(select(User).where(User.username == username).limit(1))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def authenticate_user(session: AsyncSession, username: str, password: str) -> Optional[Dict]:
    """
    Check a username/password pair.

    Returns:
        User dictionary if the credentials are valid, otherwise None
    """
    user = await get_user_by_username(session, username)
    if not user or not auth_service.verify_password(password, user["password_hash"]):
        return None
    return user


async def list_users(session: AsyncSession) -> List[Dict]:
    """List all users ordered by username."""
    result = await session.execute(select(User).order_by(User.username))
    return [_user_to_dict(user) for user in result.scalars().all()]


async def count_users(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(User.id)))
    return result.scalar_one()


async def update_user(
    session: AsyncSession,
    user_id: int,
    username: Optional[str] = None,
    password: Optional[str] = None,
    role: Optional[UserRole] = None,
    team_id: Optional[int] = None,
    clear_team: bool = False,
) -> Dict:
    """
    Update a user. Only supplied fields change; a new password is re-hashed.

    Raises:
        NotFoundError: If the user (or the new team) does not exist
        DuplicateError: If the new username is taken by another user
    """
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    if username is not None and username != user.username:
        result = await session.execute(select(User.id).where(User.username == username))
        if result.scalar_one_or_none():
            raise DuplicateError(f"Username {username} already exists")
        user.username = username
    if password:
        user.password_hash = auth_service.hash_password(password)
    if role is not None:
        user.role = UserRole(role)
    if clear_team:
        user.team_id = None
    elif team_id is not None:
        await _ensure_team_exists(session, team_id)
        user.team_id = team_id

    await session.commit()
    await session.refresh(user)
    return _user_to_dict(user)


async def delete_user(session: AsyncSession, user_id: int) -> bool:
    """
    Delete a user.

    Returns:
        True if a user was deleted, False if not found
    """
    result = await session.execute(delete(User).where(User.id == user_id))
    await session.commit()
    return result.rowcount > 0
