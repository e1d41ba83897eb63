"""Player route handlers."""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database.db import get_db_session
from backend.services import data_service
from backend.services.errors import NotFoundError
from backend.api.auth_dependencies import require_can_edit, ensure_team_access
from backend.models.schemas import PlayerRequest, UpdatePlayerRequest, PlayerResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players", response_model=List[PlayerResponse])
async def list_players(
    team_id: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List players ordered by name. Query params: team_id (optional filter)."""
    try:
        return await data_service.list_players(session, team_id=team_id)
    except Exception as e:
        logger.error(f"Error loading players: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error loading players: {str(e)}")


@router.get("/api/players/{player_id}", response_model=PlayerResponse)
async def get_player(player_id: int, session: AsyncSession = Depends(get_db_session)):
    player = await data_service.get_player(session, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


@router.post("/api/players", response_model=PlayerResponse, status_code=201)
async def create_player(
    payload: PlayerRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Add a player to a team. Team managers may only add to their own team."""
    ensure_team_access(current_user, payload.team_id)
    try:
        return await data_service.create_player(session, team_id=payload.team_id, name=payload.name.strip())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating player: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating player: {str(e)}")


@router.put("/api/players/{player_id}", response_model=PlayerResponse)
async def update_player(
    player_id: int,
    payload: UpdatePlayerRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Rename a player or move them to another team."""
    player = await data_service.get_player(session, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    ensure_team_access(current_user, player["team_id"])
    if payload.team_id is not None:
        ensure_team_access(current_user, payload.team_id)
    try:
        return await data_service.update_player(
            session, player_id, name=payload.name, team_id=payload.team_id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating player: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating player: {str(e)}")


@router.delete("/api/players/{player_id}")
async def delete_player(
    player_id: int,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a player. Pair slots they occupied become empty."""
    player = await data_service.get_player(session, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    ensure_team_access(current_user, player["team_id"])
    try:
        await data_service.delete_player(session, player_id)
    except Exception as e:
        logger.error(f"Error deleting player: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting player: {str(e)}")
    return {"success": True, "message": "Player deleted"}
