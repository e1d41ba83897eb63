"""Builders for transient ORM objects used by calculation tests."""

from datetime import date
from backend.database.models import Match, MatchPair
from backend.utils.constants import GAMES_PER_PAIR


def make_pair(games, pair_number=1, players=(None, None, None, None), match_id=None):
    """Build a transient MatchPair from [(home, away), ...] game scores."""
    games = list(games) + [(None, None)] * (GAMES_PER_PAIR - len(games))
    return MatchPair(
        match_id=match_id,
        pair_number=pair_number,
        home_player1_id=players[0],
        home_player2_id=players[1],
        away_player1_id=players[2],
        away_player2_id=players[3],
        game1_home_score=games[0][0],
        game1_away_score=games[0][1],
        game2_home_score=games[1][0],
        game2_away_score=games[1][1],
        game3_home_score=games[2][0],
        game3_away_score=games[2][1],
    )


def make_match(home_team_id, away_team_id, home_score, away_score, completed=True, match_date=None):
    """Build a transient Match with a stored aggregate score."""
    return Match(
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        match_date=match_date or date(2024, 1, 8),
        home_score=home_score,
        away_score=away_score,
        completed=completed,
    )
