"""
Badminton League API Server

FastAPI server that provides REST endpoints for teams, matches, nominations,
standings and player statistics.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from backend.api.routes import router, limiter as routes_limiter
from backend.database import db
from backend.database.init_defaults import init_defaults

# Set up logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting up Badminton League API...")

    # Create tables if they don't exist (migrations are run with alembic in production)
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        if os.getenv("ENV") == "production":
            raise

    try:
        await init_defaults()
    except Exception as e:
        logger.error(f"Failed to initialize defaults: {e}", exc_info=True)

    yield  # App is running

    # Shutdown
    logger.info("Shutting down Badminton League API...")
    await db.close_database()


app = FastAPI(
    title="Badminton League API",
    description="API for running a team badminton league: fixtures, pair results, standings and player statistics",
    version="1.0.0",
    lifespan=lifespan
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware to allow frontend access
allowed_origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
