"""
Match nomination gate.

A nomination records that a player is available for selection in a given
match. Only players from one of the two teams in the match may be nominated.
Nominations never change pair or match scores.
"""

import logging
from typing import Dict, List, Tuple
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from backend.database.models import Match, MatchNomination, Player
from backend.services.errors import NotFoundError, NotEligibleError
from backend.utils.datetime_utils import format_timestamp

logger = logging.getLogger(__name__)


def _nomination_to_dict(nomination: MatchNomination) -> Dict:
    return {
        "id": nomination.id,
        "match_id": nomination.match_id,
        "player_id": nomination.player_id,
        "created_at": format_timestamp(nomination.created_at),
    }


async def _get_match_and_player(
    session: AsyncSession, match_id: int, player_id: int
) -> Tuple[Match, Player]:
    """Load both sides of a nomination, raising NotFoundError if either is missing."""
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError(f"Player {player_id} not found")
    return match, player


def is_eligible(match: Match, player: Player) -> bool:
    """A player is eligible when their team plays in the match."""
    return player.team_id in (match.home_team_id, match.away_team_id)


async def _find_nomination(session: AsyncSession, match_id: int, player_id: int):
    result = await session.execute(
        select(MatchNomination).where(
            MatchNomination.match_id == match_id,
            MatchNomination.player_id == player_id,
        )
    )
    return result.scalar_one_or_none()


async def nominate(session: AsyncSession, match_id: int, player_id: int) -> Dict:
    """
    Nominate a player for a match. Idempotent.

    Args:
        session: Database session
        match_id: Match ID
        player_id: Player ID

    Returns:
        Nomination dict with a "created" flag (False if it already existed)

    Raises:
        NotFoundError: If the match or player does not exist
        NotEligibleError: If the player's team is not playing in the match
    """
    match, player = await _get_match_and_player(session, match_id, player_id)
    if not is_eligible(match, player):
        raise NotEligibleError(
            f"Player {player_id} does not belong to either team in match {match_id}"
        )

    existing = await _find_nomination(session, match_id, player_id)
    if existing:
        return {**_nomination_to_dict(existing), "created": False}

    nomination = MatchNomination(match_id=match_id, player_id=player_id)
    session.add(nomination)
    try:
        await session.commit()
    except IntegrityError:
        # A concurrent request inserted the same (match, player) row first
        await session.rollback()
        existing = await _find_nomination(session, match_id, player_id)
        return {**_nomination_to_dict(existing), "created": False}

    await session.refresh(nomination)
    logger.info(f"Nominated player {player_id} for match {match_id}")
    return {**_nomination_to_dict(nomination), "created": True}


async def unnominate(session: AsyncSession, match_id: int, player_id: int) -> bool:
    """
    Remove a nomination. Removing a nomination that does not exist is a no-op.

    Returns:
        True if a nomination was removed, False if there was none

    Raises:
        NotFoundError: If the match or player does not exist
    """
    await _get_match_and_player(session, match_id, player_id)
    result = await session.execute(
        delete(MatchNomination).where(
            MatchNomination.match_id == match_id,
            MatchNomination.player_id == player_id,
        )
    )
    await session.commit()
    removed = result.rowcount > 0
    if removed:
        logger.info(f"Removed nomination of player {player_id} from match {match_id}")
    return removed


async def list_nominations(session: AsyncSession, match_id: int) -> List[Dict]:
    """
    List all nominations for a match.

    Raises:
        NotFoundError: If the match does not exist
    """
    if await session.get(Match, match_id) is None:
        raise NotFoundError(f"Match {match_id} not found")
    result = await session.execute(
        select(MatchNomination)
        .where(MatchNomination.match_id == match_id)
        .order_by(MatchNomination.id)
    )
    return [_nomination_to_dict(n) for n in result.scalars().all()]


async def list_nominated_players(session: AsyncSession, match_id: int, team_id: int) -> List[Dict]:
    """
    List the players of one team nominated for a match, ordered by name.

    Raises:
        NotFoundError: If the match does not exist
    """
    if await session.get(Match, match_id) is None:
        raise NotFoundError(f"Match {match_id} not found")
    result = await session.execute(
        select(Player)
        .join(MatchNomination, MatchNomination.player_id == Player.id)
        .where(MatchNomination.match_id == match_id, Player.team_id == team_id)
        .order_by(Player.name, Player.id)
    )
    return [
        {"id": p.id, "team_id": p.team_id, "name": p.name, "created_at": format_timestamp(p.created_at)}
        for p in result.scalars().all()
    ]
