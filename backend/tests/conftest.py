"""
Shared pytest configuration for backend tests.

Store-backed tests run against a fresh in-memory SQLite database per test.
"""

import os

# Disable rate limiting before any route module is imported
os.environ.setdefault("ENV", "test")

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from backend.database.db import Base
from backend.database.models import Team, Player


@pytest_asyncio.fixture
async def db_session():
    """Create a test database session."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        yield session

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def two_teams(db_session):
    """Create a home and an away team with three players each."""
    home = Team(name="Shuttle Stars")
    away = Team(name="Net Ninjas")
    db_session.add_all([home, away])
    await db_session.flush()

    home_players = [Player(team_id=home.id, name=n) for n in ("Alice", "Bea", "Cara")]
    away_players = [Player(team_id=away.id, name=n) for n in ("Dan", "Eli", "Finn")]
    db_session.add_all(home_players + away_players)
    await db_session.commit()
    return home, away, home_players, away_players
