"""
League standings calculation.
Folds completed matches into a ranked per-team table.
"""

from typing import Dict, Iterable, List, NamedTuple, Optional
from backend.utils.constants import DEFAULT_POINTS_PER_WIN, DEFAULT_POINTS_PER_DRAW


class ScoringConvention(NamedTuple):
    """League points awarded per match result."""

    points_per_win: int = DEFAULT_POINTS_PER_WIN
    points_per_draw: int = DEFAULT_POINTS_PER_DRAW


THREE_POINT_CONVENTION = ScoringConvention(points_per_win=3, points_per_draw=1)
TWO_POINT_CONVENTION = ScoringConvention(points_per_win=2, points_per_draw=0)


# ============================================================================
# TeamStanding Class
# ============================================================================

class TeamStanding:
    """Accumulates one team's results across completed matches."""

    def __init__(self, team_id: int, team_name: str, convention: ScoringConvention):
        self.team_id = team_id
        self.team_name = team_name
        self.convention = convention
        self.wins = 0
        self.draws = 0
        self.losses = 0
        self.pairs_won = 0
        self.pairs_lost = 0

    @property
    def played(self) -> int:
        return self.wins + self.draws + self.losses

    @property
    def pairs_diff(self) -> int:
        """Pair differential, the standings tie-break."""
        return self.pairs_won - self.pairs_lost

    @property
    def points(self) -> int:
        return (
            self.wins * self.convention.points_per_win
            + self.draws * self.convention.points_per_draw
        )

    def record_result(self, own_score: int, opponent_score: int) -> None:
        """Record one match from this team's side of the aggregate score."""
        own_score = own_score or 0
        opponent_score = opponent_score or 0
        self.pairs_won += own_score
        self.pairs_lost += opponent_score
        if own_score > opponent_score:
            self.wins += 1
        elif own_score < opponent_score:
            self.losses += 1
        else:
            self.draws += 1

    def to_dict(self) -> Dict:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "played": self.played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "pairs_won": self.pairs_won,
            "pairs_lost": self.pairs_lost,
            "pairs_diff": self.pairs_diff,
            "points": self.points,
        }


def _sort_standings(standings: List[TeamStanding]) -> List[TeamStanding]:
    """Sort by points, then pair differential, both descending. Stable on exact ties."""
    return sorted(standings, key=lambda s: (-s.points, -s.pairs_diff))


# ============================================================================
# Main Processing Functions
# ============================================================================

def compute_standings(
    teams: Iterable,
    matches: Iterable,
    convention: Optional[ScoringConvention] = None,
) -> List[TeamStanding]:
    """
    Compute the ranked standings table.

    Only matches flagged completed are counted, and each uses its stored
    aggregate home_score/away_score rather than re-deriving from pairs.
    Teams with no completed matches get all-zero rows.

    Args:
        teams: Team ORM objects, in the order ties should keep (name order)
        matches: Match ORM objects; incomplete matches are ignored
        convention: Points per win/draw (defaults to three points per win)

    Returns:
        List of TeamStanding, best first
    """
    convention = convention or THREE_POINT_CONVENTION
    table: Dict[int, TeamStanding] = {}
    for team in teams:
        table[team.id] = TeamStanding(team.id, team.name, convention)

    for match in matches:
        if not match.completed:
            continue
        home = table.get(match.home_team_id)
        away = table.get(match.away_team_id)
        if home is not None:
            home.record_result(match.home_score, match.away_score)
        if away is not None:
            away.record_result(match.away_score, match.home_score)

    return _sort_standings(list(table.values()))


class StandingsSnapshot(NamedTuple):
    """Standings as they stood after all matches on a given date."""

    date: object
    standings: List[TeamStanding]


def compute_standings_history(
    teams: Iterable,
    matches: Iterable,
    convention: Optional[ScoringConvention] = None,
) -> List[StandingsSnapshot]:
    """
    Compute the standings after each match date.

    Every snapshot is a full recomputation over completed matches played on
    or before that date. Dates with no completed match produce no snapshot.
    """
    teams = list(teams)
    completed = [m for m in matches if m.completed]
    dates = sorted({m.match_date for m in completed})

    history = []
    for match_date in dates:
        played_so_far = [m for m in completed if m.match_date <= match_date]
        history.append(
            StandingsSnapshot(match_date, compute_standings(teams, played_so_far, convention))
        )
    return history
