"""
Data service layer for database operations.
Handles CRUD for teams, players, matches and pairs, and feeds the
standings and statistics calculations.
"""

import logging
import random
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_
from backend.database.models import Team, Player, User, Match, MatchPair, MatchNomination
from backend.services import (
    scoring_service,
    standings_service,
    statistics_service,
    pairing_service,
)
from backend.services.errors import NotFoundError, DuplicateError
from backend.services.standings_service import ScoringConvention
from backend.utils.constants import PAIRS_PER_MATCH, HOME, AWAY
from backend.utils.datetime_utils import format_match_date, format_timestamp

logger = logging.getLogger(__name__)

PAIR_PLAYER_FIELDS = [
    "home_player1_id",
    "home_player2_id",
    "away_player1_id",
    "away_player2_id",
]
"""The four FK columns on the MatchPair table that reference players."""

PAIR_SCORE_FIELDS = [
    "game1_home_score",
    "game1_away_score",
    "game2_home_score",
    "game2_away_score",
    "game3_home_score",
    "game3_away_score",
]

MATCH_UPDATE_FIELDS = ["match_date", "location", "completed"]
TEAM_FIELDS = ["name", "home_day", "home_time", "address"]


#
# Serialization helpers
#

def _team_to_dict(team: Team) -> Dict:
    return {
        "id": team.id,
        "name": team.name,
        "home_day": team.home_day,
        "home_time": team.home_time,
        "address": team.address,
        "created_at": format_timestamp(team.created_at),
    }


def _player_to_dict(player: Player, team_name: Optional[str] = None) -> Dict:
    return {
        "id": player.id,
        "team_id": player.team_id,
        "name": player.name,
        "team_name": team_name,
        "created_at": format_timestamp(player.created_at),
    }


def _match_to_dict(match: Match, team_names: Dict[int, str]) -> Dict:
    return {
        "id": match.id,
        "home_team_id": match.home_team_id,
        "away_team_id": match.away_team_id,
        "home_team_name": team_names.get(match.home_team_id),
        "away_team_name": team_names.get(match.away_team_id),
        "match_date": format_match_date(match.match_date),
        "location": match.location,
        "home_score": match.home_score or 0,
        "away_score": match.away_score or 0,
        "completed": bool(match.completed),
        "created_at": format_timestamp(match.created_at),
    }


def _pair_to_dict(pair: MatchPair, player_names: Dict[int, str]) -> Dict:
    """Serialize a pair with player names and its derived outcome."""
    result = scoring_service.score_pair(pair)
    data = {
        "id": pair.id,
        "match_id": pair.match_id,
        "pair_number": pair.pair_number,
    }
    for field in PAIR_PLAYER_FIELDS:
        player_id = getattr(pair, field)
        data[field] = player_id
        data[field.replace("_id", "_name")] = player_names.get(player_id) if player_id else None
    for field in PAIR_SCORE_FIELDS:
        data[field] = getattr(pair, field) or 0
    data.update({
        "home_games": result.home_games,
        "away_games": result.away_games,
        "winner": result.winner,
        "home_points": scoring_service.side_points(pair, HOME),
        "away_points": scoring_service.side_points(pair, AWAY),
    })
    return data


async def _get_team_names(session: AsyncSession) -> Dict[int, str]:
    result = await session.execute(select(Team.id, Team.name))
    return {team_id: name for team_id, name in result.all()}


async def _get_player_names(session: AsyncSession, player_ids: Iterable[Optional[int]]) -> Dict[int, str]:
    ids = {pid for pid in player_ids if pid is not None}
    if not ids:
        return {}
    result = await session.execute(select(Player.id, Player.name).where(Player.id.in_(ids)))
    return {player_id: name for player_id, name in result.all()}


#
# Teams
#

async def list_teams(session: AsyncSession) -> List[Dict]:
    """List all teams ordered by name."""
    result = await session.execute(select(Team).order_by(Team.name, Team.id))
    return [_team_to_dict(team) for team in result.scalars().all()]


async def get_team(session: AsyncSession, team_id: int) -> Optional[Dict]:
    """Get a team by ID, or None if not found."""
    team = await session.get(Team, team_id)
    return _team_to_dict(team) if team else None


async def _ensure_unique_team_name(session: AsyncSession, name: str, team_id: Optional[int] = None) -> None:
    query = select(Team.id).where(Team.name == name)
    if team_id is not None:
        query = query.where(Team.id != team_id)
    result = await session.execute(query)
    if result.scalar_one_or_none():
        raise DuplicateError(f"Team {name} already exists")


async def create_team(
    session: AsyncSession,
    name: str,
    home_day: Optional[str] = None,
    home_time: Optional[str] = None,
    address: Optional[str] = None,
) -> Dict:
    """
    Create a new team.

    Raises:
        DuplicateError: If a team with this name already exists
    """
    await _ensure_unique_team_name(session, name)
    team = Team(name=name, home_day=home_day, home_time=home_time, address=address)
    session.add(team)
    await session.commit()
    await session.refresh(team)
    logger.info(f"Created team {team.id} ({name})")
    return _team_to_dict(team)


async def update_team(session: AsyncSession, team_id: int, changes: Dict) -> Dict:
    """
    Update a team. Only keys present in changes are applied.

    Raises:
        NotFoundError: If the team does not exist
        DuplicateError: If the new name belongs to another team
    """
    team = await session.get(Team, team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found")
    if changes.get("name") is not None and changes["name"] != team.name:
        await _ensure_unique_team_name(session, changes["name"], team_id)

    for field in TEAM_FIELDS:
        if field in changes:
            if field == "name" and changes[field] is None:
                continue
            setattr(team, field, changes[field])

    await session.commit()
    await session.refresh(team)
    return _team_to_dict(team)


async def delete_team(session: AsyncSession, team_id: int) -> bool:
    """
    Delete a team, its players, and every match it played in.

    Pairs and nominations of the deleted matches are removed with them, and
    users managing the team lose their team affiliation.

    Returns:
        True if successful, False if team not found
    """
    team = await session.get(Team, team_id)
    if team is None:
        return False

    match_ids = (
        await session.execute(
            select(Match.id).where(
                or_(Match.home_team_id == team_id, Match.away_team_id == team_id)
            )
        )
    ).scalars().all()
    player_ids = (
        await session.execute(select(Player.id).where(Player.team_id == team_id))
    ).scalars().all()

    if match_ids:
        await session.execute(delete(MatchNomination).where(MatchNomination.match_id.in_(match_ids)))
        await session.execute(delete(MatchPair).where(MatchPair.match_id.in_(match_ids)))
        await session.execute(delete(Match).where(Match.id.in_(match_ids)))
    for player_id in player_ids:
        await _clear_player_references(session, player_id)
    await session.execute(update(User).where(User.team_id == team_id).values(team_id=None))
    await session.execute(delete(Player).where(Player.team_id == team_id))
    await session.execute(delete(Team).where(Team.id == team_id))
    await session.commit()
    logger.info(
        f"Deleted team {team_id} with {len(player_ids)} players and {len(match_ids)} matches"
    )
    return True


#
# Players
#

async def list_players(session: AsyncSession, team_id: Optional[int] = None) -> List[Dict]:
    """List players ordered by name, optionally restricted to one team."""
    query = select(Player).order_by(Player.name, Player.id)
    if team_id is not None:
        query = query.where(Player.team_id == team_id)
    result = await session.execute(query)
    team_names = await _get_team_names(session)
    return [_player_to_dict(p, team_names.get(p.team_id)) for p in result.scalars().all()]


async def get_player(session: AsyncSession, player_id: int) -> Optional[Dict]:
    """Get a player by ID, or None if not found."""
    player = await session.get(Player, player_id)
    if player is None:
        return None
    team = await session.get(Team, player.team_id)
    return _player_to_dict(player, team.name if team else None)


async def create_player(session: AsyncSession, team_id: int, name: str) -> Dict:
    """
    Create a player on a team.

    Raises:
        NotFoundError: If the team does not exist
    """
    team = await session.get(Team, team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found")
    player = Player(team_id=team_id, name=name)
    session.add(player)
    await session.commit()
    await session.refresh(player)
    return _player_to_dict(player, team.name)


async def update_player(
    session: AsyncSession, player_id: int, name: Optional[str] = None, team_id: Optional[int] = None
) -> Dict:
    """
    Rename a player or move them to another team.

    Moving a player drops their nominations for matches the new team does
    not play in.

    Raises:
        NotFoundError: If the player or new team does not exist
    """
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError(f"Player {player_id} not found")
    if team_id is not None and team_id != player.team_id:
        if await session.get(Team, team_id) is None:
            raise NotFoundError(f"Team {team_id} not found")
        player.team_id = team_id
        other_matches = select(Match.id).where(
            Match.home_team_id != team_id, Match.away_team_id != team_id
        )
        result = await session.execute(
            delete(MatchNomination).where(
                MatchNomination.player_id == player_id,
                MatchNomination.match_id.in_(other_matches),
            )
        )
        logger.info(
            f"Moved player {player_id} to team {team_id}, dropped {result.rowcount} nominations"
        )
    if name is not None:
        player.name = name
    await session.commit()
    await session.refresh(player)
    team = await session.get(Team, player.team_id)
    return _player_to_dict(player, team.name if team else None)


async def _clear_player_references(session: AsyncSession, player_id: int) -> None:
    """Null out every pair slot that references the player and drop their nominations."""
    for field in PAIR_PLAYER_FIELDS:
        column = getattr(MatchPair, field)
        await session.execute(
            update(MatchPair).where(column == player_id).values({field: None})
        )
    await session.execute(delete(MatchNomination).where(MatchNomination.player_id == player_id))


async def delete_player(session: AsyncSession, player_id: int) -> bool:
    """
    Delete a player. Pair slots that pointed to the player become empty.

    Match scores are untouched: they depend only on game scores.

    Returns:
        True if successful, False if player not found
    """
    player = await session.get(Player, player_id)
    if player is None:
        return False
    await _clear_player_references(session, player_id)
    await session.execute(delete(Player).where(Player.id == player_id))
    await session.commit()
    return True


#
# Matches
#

async def list_matches(session: AsyncSession, team_id: Optional[int] = None) -> List[Dict]:
    """List matches, most recent first, optionally for one team."""
    query = select(Match).order_by(Match.match_date.desc(), Match.id.desc())
    if team_id is not None:
        query = query.where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
    result = await session.execute(query)
    team_names = await _get_team_names(session)
    return [_match_to_dict(m, team_names) for m in result.scalars().all()]


async def get_match_record(session: AsyncSession, match_id: int) -> Optional[Match]:
    """Get the Match ORM object without pairs, or None if not found."""
    return await session.get(Match, match_id)


async def get_match_pairs(session: AsyncSession, match_id: int) -> List[MatchPair]:
    """Get all pairs of a match ordered by pair number."""
    result = await session.execute(
        select(MatchPair)
        .where(MatchPair.match_id == match_id)
        .order_by(MatchPair.pair_number)
    )
    return list(result.scalars().all())


async def get_match(session: AsyncSession, match_id: int) -> Optional[Dict]:
    """
    Get a match with its pairs, player names and per-pair outcomes.

    Returns:
        Match dict with a "pairs" list, or None if not found
    """
    match = await session.get(Match, match_id)
    if match is None:
        return None
    pairs = await get_match_pairs(session, match_id)
    team_names = await _get_team_names(session)
    player_names = await _get_player_names(
        session, (getattr(p, f) for p in pairs for f in PAIR_PLAYER_FIELDS)
    )
    data = _match_to_dict(match, team_names)
    data["pairs"] = [_pair_to_dict(p, player_names) for p in pairs]
    return data


async def create_match(
    session: AsyncSession,
    home_team_id: int,
    away_team_id: int,
    match_date: date,
    location: Optional[str] = None,
) -> Dict:
    """
    Create a match together with its nine empty pairs.

    Args:
        session: Database session
        home_team_id: Home team ID
        away_team_id: Away team ID
        match_date: Date of the match
        location: Optional venue

    Returns:
        Match dict including pairs

    Raises:
        NotFoundError: If either team does not exist
    """
    for team_id in (home_team_id, away_team_id):
        if await session.get(Team, team_id) is None:
            raise NotFoundError(f"Team {team_id} not found")

    match = Match(
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        match_date=match_date,
        location=location,
        home_score=0,
        away_score=0,
        completed=False,
    )
    session.add(match)
    await session.flush()  # Get the match ID

    session.add_all([
        MatchPair(match_id=match.id, pair_number=number)
        for number in range(1, PAIRS_PER_MATCH + 1)
    ])
    await session.commit()
    logger.info(f"Created match {match.id}: team {home_team_id} vs team {away_team_id}")
    return await get_match(session, match.id)


async def update_match(session: AsyncSession, match_id: int, changes: Dict) -> Dict:
    """
    Update match metadata (date, location, completed flag).

    The aggregate score is not editable here; it follows the pairs.

    Raises:
        NotFoundError: If the match does not exist
    """
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")
    for field in MATCH_UPDATE_FIELDS:
        if field in changes and (changes[field] is not None or field == "location"):
            setattr(match, field, changes[field])
    await session.commit()
    team_names = await _get_team_names(session)
    return _match_to_dict(match, team_names)


async def delete_match(session: AsyncSession, match_id: int) -> bool:
    """
    Delete a match along with its pairs and nominations.

    Returns:
        True if successful, False if match not found
    """
    await session.execute(delete(MatchNomination).where(MatchNomination.match_id == match_id))
    await session.execute(delete(MatchPair).where(MatchPair.match_id == match_id))
    result = await session.execute(delete(Match).where(Match.id == match_id))
    await session.commit()
    return result.rowcount > 0


#
# Pairs and match score aggregation
#

async def recompute_match_score(session: AsyncSession, match_id: int) -> Tuple[int, int]:
    """
    Recount a match's score from all of its pairs and store it.

    Every pair is re-read, so the stored score is always a function of the
    current pair data regardless of the order pair updates arrived in.

    Returns:
        Tuple of (home_score, away_score)

    Raises:
        NotFoundError: If the match does not exist
    """
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")
    pairs = await get_match_pairs(session, match_id)
    home_score, away_score = scoring_service.calculate_match_score(pairs)
    match.home_score = home_score
    match.away_score = away_score
    await session.commit()
    logger.debug(f"Match {match_id} score recomputed: {home_score}-{away_score}")
    return home_score, away_score


async def recompute_all_match_scores(session: AsyncSession) -> int:
    """Recompute the stored score of every match. Returns the number of matches."""
    match_ids = (await session.execute(select(Match.id))).scalars().all()
    for match_id in match_ids:
        await recompute_match_score(session, match_id)
    return len(match_ids)


async def get_pair(session: AsyncSession, pair_id: int) -> Optional[Dict]:
    """Get a single pair with player names, or None if not found."""
    pair = await session.get(MatchPair, pair_id)
    if pair is None:
        return None
    player_names = await _get_player_names(session, (getattr(pair, f) for f in PAIR_PLAYER_FIELDS))
    return _pair_to_dict(pair, player_names)


async def get_pair_record(session: AsyncSession, pair_id: int) -> Optional[MatchPair]:
    return await session.get(MatchPair, pair_id)


async def update_match_pair(session: AsyncSession, pair_id: int, changes: Dict) -> Dict:
    """
    Update a pair's players and/or game scores, then recompute the match score.

    Only keys present in changes are applied; an explicit None empties a
    player slot or resets a score to 0.

    Args:
        session: Database session
        pair_id: Pair ID
        changes: Subset of PAIR_PLAYER_FIELDS and PAIR_SCORE_FIELDS

    Returns:
        Updated pair dict

    Raises:
        NotFoundError: If the pair, or a referenced player, does not exist
    """
    pair = await session.get(MatchPair, pair_id)
    if pair is None:
        raise NotFoundError(f"Pair {pair_id} not found")

    new_player_ids = {changes[f] for f in PAIR_PLAYER_FIELDS if changes.get(f) is not None}
    if new_player_ids:
        found = await _get_player_names(session, new_player_ids)
        missing = sorted(new_player_ids - set(found))
        if missing:
            raise NotFoundError(f"Player {missing[0]} not found")

    for field in PAIR_PLAYER_FIELDS:
        if field in changes:
            setattr(pair, field, changes[field])
    for field in PAIR_SCORE_FIELDS:
        if field in changes:
            setattr(pair, field, changes[field] or 0)
    await session.flush()

    await recompute_match_score(session, pair.match_id)
    return await get_pair(session, pair_id)


async def generate_match_pairs(
    session: AsyncSession, match_id: int, rng: Optional[random.Random] = None
) -> Dict:
    """
    Fill the nine pairs of a match from each team's nominated players.

    Existing line-ups and game scores are replaced; all games reset to 0-0.

    Returns:
        Match dict including the regenerated pairs

    Raises:
        NotFoundError: If the match does not exist
    """
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")

    async def nominated_ids(team_id: int) -> List[int]:
        result = await session.execute(
            select(Player.id)
            .join(MatchNomination, MatchNomination.player_id == Player.id)
            .where(MatchNomination.match_id == match_id, Player.team_id == team_id)
            .order_by(Player.id)
        )
        return list(result.scalars().all())

    rng = rng or random.Random()
    home_pairs = pairing_service.generate_pairs(await nominated_ids(match.home_team_id), rng=rng)
    away_pairs = pairing_service.generate_pairs(await nominated_ids(match.away_team_id), rng=rng)

    pairs = await get_match_pairs(session, match_id)
    for index, pair in enumerate(pairs):
        home = home_pairs[index] if index < len(home_pairs) else (None, None)
        away = away_pairs[index] if index < len(away_pairs) else (None, None)
        pair.home_player1_id, pair.home_player2_id = home
        pair.away_player1_id, pair.away_player2_id = away
        for field in PAIR_SCORE_FIELDS:
            setattr(pair, field, 0)
    await session.flush()

    await recompute_match_score(session, match_id)
    logger.info(f"Generated pairs for match {match_id}")
    return await get_match(session, match_id)


#
# Standings and statistics
#

async def _load_league(session: AsyncSession) -> Tuple[List[Team], List[Match]]:
    teams = (await session.execute(select(Team).order_by(Team.name, Team.id))).scalars().all()
    matches = (
        await session.execute(select(Match).where(Match.completed.is_(True)).order_by(Match.id))
    ).scalars().all()
    return list(teams), list(matches)


async def get_standings(
    session: AsyncSession, convention: Optional[ScoringConvention] = None
) -> List[Dict]:
    """Compute the current standings table from all completed matches."""
    teams, matches = await _load_league(session)
    standings = standings_service.compute_standings(teams, matches, convention)
    return [s.to_dict() for s in standings]


async def get_standings_history(
    session: AsyncSession, convention: Optional[ScoringConvention] = None
) -> List[Dict]:
    """Compute standings after each match date, oldest first."""
    teams, matches = await _load_league(session)
    history = standings_service.compute_standings_history(teams, matches, convention)
    return [
        {
            "date": format_match_date(snapshot.date),
            "standings": [
                {**s.to_dict(), "position": position}
                for position, s in enumerate(snapshot.standings, 1)
            ],
        }
        for snapshot in history
    ]


async def get_player_statistics(session: AsyncSession) -> List[statistics_service.PlayerStatistic]:
    """Compute statistics for every player across all pairs of all matches."""
    players = (await session.execute(select(Player).order_by(Player.name, Player.id))).scalars().all()
    pairs = (await session.execute(select(MatchPair).order_by(MatchPair.id))).scalars().all()
    team_names = await _get_team_names(session)
    return statistics_service.compute_player_statistics(players, pairs, team_names)


async def get_statistics_leaders(session: AsyncSession, min_games: Optional[int] = None) -> Dict:
    """Compute the statistics leaders (top scorer, best win rate, most active)."""
    statistics = await get_player_statistics(session)
    if min_games is None:
        return statistics_service.compute_statistics_leaders(statistics)
    return statistics_service.compute_statistics_leaders(statistics, min_games)
