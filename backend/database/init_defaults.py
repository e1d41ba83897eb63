#!/usr/bin/env python3
"""
Initialize default database values.
This script is run on startup to create the default admin account.
"""

import asyncio
import logging
import os
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from backend.database.db import AsyncSessionLocal
from backend.database.models import UserRole
from backend.services import user_service

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")


async def ensure_default_admin(session: AsyncSession) -> Optional[dict]:
    """
    Create the default admin when the users table is empty.

    Returns:
        The created admin user, or None if any user already exists
    """
    if await user_service.count_users(session) > 0:
        logger.info("Users already exist, skipping default admin")
        return None

    admin = await user_service.create_user(
        session,
        username=DEFAULT_ADMIN_USERNAME,
        password=DEFAULT_ADMIN_PASSWORD,
        role=UserRole.ADMIN,
    )
    logger.warning(
        f"Created default admin user '{DEFAULT_ADMIN_USERNAME}'. Change its password."
    )
    return admin


async def init_defaults():
    """Initialize default database values."""
    logger.info("Initializing default database values...")
    async with AsyncSessionLocal() as session:
        await ensure_default_admin(session)
    logger.info("✓ Default values initialized")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_defaults())
