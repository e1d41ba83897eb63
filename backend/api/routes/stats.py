"""Health, standings and player statistics route handlers."""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database.db import get_db_session
from backend.services import data_service, settings_service
from backend.services.statistics_service import PlayerStatistic, format_avg_points
from backend.models.schemas import (
    StandingResponse,
    StandingsSnapshotResponse,
    PlayerStatisticResponse,
    StatisticsLeadersResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def to_statistic_response(statistic: Optional[PlayerStatistic]) -> Optional[PlayerStatisticResponse]:
    """Serialize a statistic with avg_points formatted as "x.y"."""
    if statistic is None:
        return None
    data = statistic.to_dict()
    data["avg_points"] = format_avg_points(statistic.total_points, statistic.games_played)
    return PlayerStatisticResponse(**data)


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/api/standings", response_model=List[StandingResponse])
async def get_standings(
    points_per_win: Optional[int] = Query(None, ge=0),
    points_per_draw: Optional[int] = Query(None, ge=0),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Get the league table computed from completed matches.

    Query params: points_per_win, points_per_draw (override the configured
    convention, which defaults to 3 per win and 1 per draw).
    """
    try:
        convention = settings_service.get_scoring_convention(points_per_win, points_per_draw)
        return await data_service.get_standings(session, convention)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error calculating standings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error calculating standings: {str(e)}")


@router.get("/api/standings/history", response_model=List[StandingsSnapshotResponse])
async def get_standings_history(
    points_per_win: Optional[int] = Query(None, ge=0),
    points_per_draw: Optional[int] = Query(None, ge=0),
    session: AsyncSession = Depends(get_db_session),
):
    """Get the standings as they stood after each match date."""
    try:
        convention = settings_service.get_scoring_convention(points_per_win, points_per_draw)
        return await data_service.get_standings_history(session, convention)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error calculating standings history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error calculating standings history: {str(e)}")


@router.get("/api/player-statistics", response_model=List[PlayerStatisticResponse])
async def get_player_statistics(session: AsyncSession = Depends(get_db_session)):
    """Get per-player statistics, highest total points first."""
    try:
        statistics = await data_service.get_player_statistics(session)
        return [to_statistic_response(s) for s in statistics]
    except Exception as e:
        logger.error(f"Error calculating player statistics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error calculating player statistics: {str(e)}")


@router.get("/api/player-statistics/leaders", response_model=StatisticsLeadersResponse)
async def get_statistics_leaders(
    min_games: Optional[int] = Query(None, ge=1),
    session: AsyncSession = Depends(get_db_session),
):
    """Get the top scorer, best win rate (min_games pairs, default 3) and most active player."""
    try:
        leaders = await data_service.get_statistics_leaders(session, min_games)
        return StatisticsLeadersResponse(
            **{key: to_statistic_response(value) for key, value in leaders.items()}
        )
    except Exception as e:
        logger.error(f"Error calculating statistics leaders: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error calculating statistics leaders: {str(e)}")
