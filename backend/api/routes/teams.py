"""Team route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database.db import get_db_session
from backend.services import data_service
from backend.services.errors import NotFoundError
from backend.api.auth_dependencies import require_admin, require_can_edit, ensure_team_access
from backend.models.schemas import TeamRequest, UpdateTeamRequest, TeamResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/teams", response_model=List[TeamResponse])
async def list_teams(session: AsyncSession = Depends(get_db_session)):
    """List all teams ordered by name."""
    try:
        return await data_service.list_teams(session)
    except Exception as e:
        logger.error(f"Error loading teams: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error loading teams: {str(e)}")


@router.get("/api/teams/{team_id}", response_model=TeamResponse)
async def get_team(team_id: int, session: AsyncSession = Depends(get_db_session)):
    team = await data_service.get_team(session, team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.post("/api/teams", response_model=TeamResponse, status_code=201)
async def create_team(
    payload: TeamRequest,
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a team.

    Request body:
        {
            "name": "Shuttle Stars",
            "home_day": "Tuesday",   // optional
            "home_time": "19:30",    // optional
            "address": "Sports Hall" // optional
        }
    """
    try:
        return await data_service.create_team(
            session,
            name=payload.name.strip(),
            home_day=payload.home_day,
            home_time=payload.home_time,
            address=payload.address,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating team: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating team: {str(e)}")


@router.put("/api/teams/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: int,
    payload: UpdateTeamRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a team. Team managers may only update their own team."""
    ensure_team_access(current_user, team_id)
    try:
        return await data_service.update_team(session, team_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating team: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating team: {str(e)}")


@router.delete("/api/teams/{team_id}")
async def delete_team(
    team_id: int,
    current_user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a team together with its players and matches."""
    try:
        deleted = await data_service.delete_team(session, team_id)
    except Exception as e:
        logger.error(f"Error deleting team: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting team: {str(e)}")
    if not deleted:
        raise HTTPException(status_code=404, detail="Team not found")
    return {"success": True, "message": "Team deleted"}
