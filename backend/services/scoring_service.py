"""
Pair scoring service.
Derives game, pair and match outcomes from raw game scores.
"""

from typing import Iterable, NamedTuple, Optional, Tuple
from backend.utils.constants import HOME, AWAY


# ============================================================================
# Game Helpers
# ============================================================================

def calculate_winner(home_score: Optional[int], away_score: Optional[int]) -> int:
    """
    Determine the winner of a single game: 1 = home, 2 = away, -1 = tie.

    There is no minimum winning score; any strictly greater score wins.
    Missing scores count as 0, so an unplayed game (0-0) is a tie.

    Args:
        home_score: Home side's score for the game
        away_score: Away side's score for the game

    Returns:
        Winner indicator (1, 2, or -1 for tie)
    """
    home = home_score or 0
    away = away_score or 0
    if home > away:
        return 1
    elif away > home:
        return 2
    else:
        return -1


# ============================================================================
# Pair Scoring
# ============================================================================

class PairResult(NamedTuple):
    """Outcome of one pair: games won per side and the winning side (or None)."""

    home_games: int
    away_games: int
    winner: Optional[str]


def score_games(games: Iterable[Tuple[Optional[int], Optional[int]]]) -> PairResult:
    """
    Score a sequence of (home_score, away_score) games.

    Each game contributes at most one to the side that scored strictly more.
    The pair winner is the side with strictly more games won; equal counts
    (0-0, or 1-1 with the third game unplayed) mean no winner.
    """
    home_games = 0
    away_games = 0
    for home_score, away_score in games:
        winner = calculate_winner(home_score, away_score)
        if winner == 1:
            home_games += 1
        elif winner == 2:
            away_games += 1

    if home_games > away_games:
        winner_side = HOME
    elif away_games > home_games:
        winner_side = AWAY
    else:
        winner_side = None
    return PairResult(home_games, away_games, winner_side)


def score_pair(pair) -> PairResult:
    """
    Score a MatchPair (or any object exposing game{1,2,3}_{home,away}_score).

    Args:
        pair: MatchPair ORM object

    Returns:
        PairResult(home_games, away_games, winner)
    """
    return score_games([
        (pair.game1_home_score, pair.game1_away_score),
        (pair.game2_home_score, pair.game2_away_score),
        (pair.game3_home_score, pair.game3_away_score),
    ])


def side_points(pair, side: str) -> int:
    """Sum one side's three game scores, treating missing scores as 0."""
    if side == HOME:
        scores = (pair.game1_home_score, pair.game2_home_score, pair.game3_home_score)
    elif side == AWAY:
        scores = (pair.game1_away_score, pair.game2_away_score, pair.game3_away_score)
    else:
        raise ValueError(f"Unknown side: {side}")
    return sum(score or 0 for score in scores)


# ============================================================================
# Match Aggregation
# ============================================================================

def calculate_match_score(pairs: Iterable) -> Tuple[int, int]:
    """
    Count pairs won by each side of a match.

    This is always a full recount over every pair supplied, never an
    incremental update, so the result depends only on the current pair data.

    Args:
        pairs: All MatchPair objects of one match

    Returns:
        Tuple of (home_score, away_score)
    """
    home_score = 0
    away_score = 0
    for pair in pairs:
        winner = score_pair(pair).winner
        if winner == HOME:
            home_score += 1
        elif winner == AWAY:
            away_score += 1
    return home_score, away_score
