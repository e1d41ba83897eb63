"""Match, pair and nomination route handlers."""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database.db import get_db_session
from backend.services import data_service, nomination_service
from backend.services.errors import NotFoundError
from backend.api.auth_dependencies import (
    require_can_edit,
    require_can_delete,
    ensure_team_access,
)
from backend.models.schemas import (
    CreateMatchRequest,
    UpdateMatchRequest,
    MatchResponse,
    MatchDetailResponse,
    UpdatePairRequest,
    PairResponse,
    NominateRequest,
    NominationResponse,
    PlayerResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


async def _get_match_or_404(session: AsyncSession, match_id: int):
    match = await data_service.get_match_record(session, match_id)
    if match is None:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.get("/api/matches", response_model=List[MatchResponse])
async def list_matches(
    team_id: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List matches, most recent first. Query params: team_id (optional filter)."""
    try:
        return await data_service.list_matches(session, team_id=team_id)
    except Exception as e:
        logger.error(f"Error loading matches: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error loading matches: {str(e)}")


@router.get("/api/matches/{match_id}", response_model=MatchDetailResponse)
async def get_match(match_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a match with its nine pairs, player names and per-pair results."""
    match = await data_service.get_match(session, match_id)
    if match is None:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.post("/api/matches", response_model=MatchDetailResponse, status_code=201)
async def create_match(
    payload: CreateMatchRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a match between two teams.

    Request body:
        {
            "home_team_id": 1,
            "away_team_id": 2,
            "match_date": "2024-03-12",
            "location": "Sports Hall"  // optional
        }
    """
    ensure_team_access(current_user, payload.home_team_id, payload.away_team_id)
    try:
        return await data_service.create_match(
            session,
            home_team_id=payload.home_team_id,
            away_team_id=payload.away_team_id,
            match_date=payload.match_date,
            location=payload.location,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating match: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating match: {str(e)}")


@router.put("/api/matches/{match_id}", response_model=MatchResponse)
async def update_match(
    match_id: int,
    payload: UpdateMatchRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Update match date, location or completed flag."""
    match = await _get_match_or_404(session, match_id)
    ensure_team_access(current_user, *match.team_ids)
    try:
        return await data_service.update_match(session, match_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating match: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating match: {str(e)}")


@router.delete("/api/matches/{match_id}")
async def delete_match(
    match_id: int,
    current_user: dict = Depends(require_can_delete),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        deleted = await data_service.delete_match(session, match_id)
    except Exception as e:
        logger.error(f"Error deleting match: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting match: {str(e)}")
    if not deleted:
        raise HTTPException(status_code=404, detail="Match not found")
    return {"success": True, "message": "Match deleted"}


# --- Pair endpoints ---


@router.put("/api/match-pairs/{pair_id}", response_model=PairResponse)
async def update_match_pair(
    pair_id: int,
    payload: UpdatePairRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Update a pair's players and game scores. The match score is recounted
    from all nine pairs afterwards.

    Only fields present in the body change; null empties a player slot.
    """
    pair = await data_service.get_pair_record(session, pair_id)
    if pair is None:
        raise HTTPException(status_code=404, detail="Pair not found")
    match = await _get_match_or_404(session, pair.match_id)
    ensure_team_access(current_user, *match.team_ids)
    try:
        return await data_service.update_match_pair(session, pair_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating pair: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating pair: {str(e)}")


@router.post("/api/matches/{match_id}/generate-pairs", response_model=MatchDetailResponse)
async def generate_match_pairs(
    match_id: int,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Fill all nine pairs from each team's nominated players. Resets game scores."""
    match = await _get_match_or_404(session, match_id)
    ensure_team_access(current_user, *match.team_ids)
    try:
        return await data_service.generate_match_pairs(session, match_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating pairs: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error generating pairs: {str(e)}")


# --- Nomination endpoints ---


@router.get("/api/matches/{match_id}/nominations", response_model=List[NominationResponse])
async def list_nominations(match_id: int, session: AsyncSession = Depends(get_db_session)):
    try:
        return await nomination_service.list_nominations(session, match_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading nominations: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error loading nominations: {str(e)}")


@router.get(
    "/api/matches/{match_id}/nominated-players/{team_id}",
    response_model=List[PlayerResponse],
)
async def list_nominated_players(
    match_id: int, team_id: int, session: AsyncSession = Depends(get_db_session)
):
    """List one team's nominated players for a match, ordered by name."""
    try:
        return await nomination_service.list_nominated_players(session, match_id, team_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading nominated players: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error loading nominated players: {str(e)}")


@router.post("/api/matches/{match_id}/nominate")
async def nominate_player(
    match_id: int,
    payload: NominateRequest,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Nominate a player for a match. Nominating an already nominated player
    succeeds without creating a second nomination.
    """
    player = await data_service.get_player(session, payload.player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    ensure_team_access(current_user, player["team_id"])
    try:
        nomination = await nomination_service.nominate(session, match_id, payload.player_id)
        message = "Player nominated" if nomination["created"] else "Player already nominated"
        return {"success": True, "message": message, "nomination": nomination}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error nominating player: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error nominating player: {str(e)}")


@router.delete("/api/matches/{match_id}/nominate/{player_id}")
async def unnominate_player(
    match_id: int,
    player_id: int,
    current_user: dict = Depends(require_can_edit),
    session: AsyncSession = Depends(get_db_session),
):
    """Withdraw a nomination. Withdrawing one that does not exist is not an error."""
    player = await data_service.get_player(session, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    ensure_team_access(current_user, player["team_id"])
    try:
        removed = await nomination_service.unnominate(session, match_id, player_id)
        return {"success": True, "removed": removed}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error removing nomination: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error removing nomination: {str(e)}")
