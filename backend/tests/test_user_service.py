"""
Tests for user service - user management and authentication.
"""
import pytest
from sqlalchemy import select
from backend.services import user_service
from backend.database.models import User, UserRole
from backend.database.init_defaults import ensure_default_admin
from backend.services.errors import NotFoundError, DuplicateError


@pytest.mark.asyncio
async def test_create_user(db_session):
    """Test creating a new user."""
    user = await user_service.create_user(
        session=db_session,
        username="coach",
        password="secret123",
        role=UserRole.LEAGUE_MANAGER,
    )

    assert user["id"] > 0
    assert user["username"] == "coach"
    assert user["role"] == "league_manager"
    assert user["password_hash"] != "secret123"

    fetched = await user_service.get_user_by_id(db_session, user["id"])
    assert fetched["username"] == "coach"


@pytest.mark.asyncio
async def test_create_user_defaults_to_observer(db_session):
    user = await user_service.create_user(db_session, "viewer", "secret123")
    assert user["role"] == "observer"
    assert user["team_id"] is None


@pytest.mark.asyncio
async def test_create_user_duplicate_username(db_session):
    """Test that creating a user with a duplicate username fails."""
    await user_service.create_user(db_session, "coach", "secret123")
    with pytest.raises(DuplicateError):
        await user_service.create_user(db_session, "coach", "another123")


@pytest.mark.asyncio
async def test_create_team_manager_with_unknown_team(db_session):
    with pytest.raises(NotFoundError):
        await user_service.create_user(db_session, "coach", "secret123", UserRole.TEAM_MANAGER, team_id=9999)


@pytest.mark.asyncio
async def test_authenticate_user(db_session):
    await user_service.create_user(db_session, "coach", "secret123")

    assert (await user_service.authenticate_user(db_session, "coach", "secret123"))["username"] == "coach"
    assert await user_service.authenticate_user(db_session, "coach", "wrong") is None
    assert await user_service.authenticate_user(db_session, "nobody", "secret123") is None


@pytest.mark.asyncio
async def test_update_user(db_session, two_teams):
    home, _, _, _ = two_teams
    user = await user_service.create_user(db_session, "coach", "secret123")

    updated = await user_service.update_user(
        db_session, user["id"], role=UserRole.TEAM_MANAGER, team_id=home.id, password="newpass1"
    )

    assert updated["role"] == "team_manager"
    assert updated["team_id"] == home.id
    assert await user_service.authenticate_user(db_session, "coach", "newpass1") is not None

    cleared = await user_service.update_user(db_session, user["id"], clear_team=True)
    assert cleared["team_id"] is None


@pytest.mark.asyncio
async def test_update_user_rename_conflict(db_session):
    await user_service.create_user(db_session, "coach", "secret123")
    other = await user_service.create_user(db_session, "viewer", "secret123")
    with pytest.raises(DuplicateError):
        await user_service.update_user(db_session, other["id"], username="coach")


@pytest.mark.asyncio
async def test_list_and_delete_users(db_session):
    await user_service.create_user(db_session, "zoe", "secret123")
    bob = await user_service.create_user(db_session, "bob", "secret123")

    assert [u["username"] for u in await user_service.list_users(db_session)] == ["bob", "zoe"]
    assert await user_service.delete_user(db_session, bob["id"]) is True
    assert await user_service.delete_user(db_session, bob["id"]) is False
    assert await user_service.count_users(db_session) == 1


@pytest.mark.asyncio
async def test_default_admin_created_once(db_session):
    admin = await ensure_default_admin(db_session)

    assert admin["role"] == "admin"
    assert await user_service.authenticate_user(db_session, admin["username"], "admin123") is not None
    assert await ensure_default_admin(db_session) is None
    result = await db_session.execute(select(User))
    assert len(result.scalars().all()) == 1
