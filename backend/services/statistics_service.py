"""
Player statistics calculation.
Folds every pair of every match into per-player aggregates.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional
from backend.services import scoring_service
from backend.utils.constants import HOME, AWAY, STATS_LEADER_MIN_GAMES


# ============================================================================
# PlayerStatistic Class
# ============================================================================

class PlayerStatistic:
    """Encapsulates pair statistics for a single player."""

    def __init__(
        self,
        player_id: int,
        name: str,
        team_id: Optional[int] = None,
        team_name: Optional[str] = None,
    ):
        self.player_id = player_id
        self.name = name
        self.team_id = team_id
        self.team_name = team_name
        self.games_played = 0  # Pairs appeared in, not individual games
        self.games_won = 0
        self.games_lost = 0
        self.total_points = 0

    @property
    def avg_points(self) -> float:
        """Average points scored per pair."""
        if self.games_played == 0:
            return 0.0
        return self.total_points / self.games_played

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.games_won / self.games_played

    def record_pair(self, pair, side: str) -> None:
        """Record one pair appearance on the given side."""
        result = scoring_service.score_pair(pair)
        self.games_played += 1
        if result.winner == side:
            self.games_won += 1
        elif result.winner is not None:
            self.games_lost += 1
        self.total_points += scoring_service.side_points(pair, side)

    def to_dict(self) -> Dict:
        return {
            "id": self.player_id,
            "name": self.name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "games_played": self.games_played,
            "games_won": self.games_won,
            "games_lost": self.games_lost,
            "total_points": self.total_points,
            "avg_points": self.avg_points,
        }


def format_avg_points(total_points: int, games_played: int) -> str:
    """
    Format a player's average to one decimal place ("0.0" when there are no games).

    Computed from the integer totals with halves rounded up, so 81 points
    over 4 pairs reads "20.3".
    """
    if games_played == 0:
        return "0.0"
    average = Decimal(total_points) / Decimal(games_played)
    return str(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def player_side(pair, player_id: int) -> Optional[str]:
    """
    Find which side of a pair a player is on.

    A player listed on both sides is treated as home.

    Returns:
        "home", "away", or None if the player is not in the pair
    """
    if player_id in (pair.home_player1_id, pair.home_player2_id):
        return HOME
    if player_id in (pair.away_player1_id, pair.away_player2_id):
        return AWAY
    return None


# ============================================================================
# Main Processing Functions
# ============================================================================

def compute_player_statistics(
    players: Iterable,
    pairs: Iterable,
    team_names: Optional[Dict[int, str]] = None,
) -> List[PlayerStatistic]:
    """
    Compute per-player statistics across all pairs.

    Pairs from every match count, completed or not. Each pair counts once
    per player no matter how many slots the player occupies. Empty slots
    (None) are skipped.

    Args:
        players: Player ORM objects
        pairs: MatchPair ORM objects from all matches
        team_names: Optional mapping of team_id to team name

    Returns:
        List of PlayerStatistic sorted by total_points descending
    """
    team_names = team_names or {}
    stats: Dict[int, PlayerStatistic] = {}
    for player in players:
        stats[player.id] = PlayerStatistic(
            player.id, player.name, player.team_id, team_names.get(player.team_id)
        )

    for pair in pairs:
        seen = set()
        for player_id in (
            pair.home_player1_id,
            pair.home_player2_id,
            pair.away_player1_id,
            pair.away_player2_id,
        ):
            if player_id is None or player_id in seen or player_id not in stats:
                continue
            seen.add(player_id)
            stats[player_id].record_pair(pair, player_side(pair, player_id))

    return sorted(stats.values(), key=lambda s: -s.total_points)


def compute_statistics_leaders(
    statistics: List[PlayerStatistic],
    min_games: int = STATS_LEADER_MIN_GAMES,
) -> Dict[str, Optional[PlayerStatistic]]:
    """
    Pick the headline players from a statistics table.

    Returns:
        Dict with "top_scorer" (most total points), "best_win_rate" (among
        players with at least min_games pairs) and "most_active" (most pairs).
        Any entry is None when no player qualifies.
    """
    active = [s for s in statistics if s.games_played > 0]
    qualified = [s for s in active if s.games_played >= min_games]
    return {
        "top_scorer": max(active, key=lambda s: s.total_points, default=None),
        "best_win_rate": max(qualified, key=lambda s: s.win_rate, default=None),
        "most_active": max(active, key=lambda s: s.games_played, default=None),
    }
