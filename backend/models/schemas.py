"""
Pydantic models for API request/response validation.
"""

from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator
from backend.database.models import UserRole


# Authentication schemas

class LoginRequest(BaseModel):
    """Request to login with username and password."""
    username: str
    password: str


class UserResponse(BaseModel):
    """User information response (never includes the password hash)."""
    id: int
    username: str
    role: UserRole
    team_id: Optional[int] = None
    created_at: Optional[str] = None


class AuthResponse(BaseModel):
    """Authentication response with JWT token."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class CreateUserRequest(BaseModel):
    """Request to create a user (admin only)."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: UserRole = UserRole.OBSERVER
    team_id: Optional[int] = None


class UpdateUserRequest(BaseModel):
    """Request to update a user. Omitted fields are unchanged; team_id null clears the team."""
    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[UserRole] = None
    team_id: Optional[int] = None


# Team schemas

class TeamRequest(BaseModel):
    """Request to create a team."""
    name: str = Field(min_length=1)
    home_day: Optional[str] = None
    home_time: Optional[str] = None
    address: Optional[str] = None


class UpdateTeamRequest(BaseModel):
    """Request to update a team. Only supplied fields change."""
    name: Optional[str] = Field(default=None, min_length=1)
    home_day: Optional[str] = None
    home_time: Optional[str] = None
    address: Optional[str] = None


class TeamResponse(BaseModel):
    id: int
    name: str
    home_day: Optional[str] = None
    home_time: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[str] = None


# Player schemas

class PlayerRequest(BaseModel):
    """Request to create a player."""
    team_id: int
    name: str = Field(min_length=1)


class UpdatePlayerRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    team_id: Optional[int] = None


class PlayerResponse(BaseModel):
    id: int
    team_id: int
    name: str
    team_name: Optional[str] = None
    created_at: Optional[str] = None


# Match schemas

class CreateMatchRequest(BaseModel):
    """Request to create a new match. Nine empty pairs are created with it."""
    home_team_id: int
    away_team_id: int
    match_date: date
    location: Optional[str] = None

    @model_validator(mode="after")
    def validate_distinct_teams(self):
        """A team cannot play itself."""
        if self.home_team_id == self.away_team_id:
            raise ValueError("Home and away teams must be different")
        return self


class UpdateMatchRequest(BaseModel):
    """Request to update match metadata. Scores are derived from pairs."""
    match_date: Optional[date] = None
    location: Optional[str] = None
    completed: Optional[bool] = None


class PairResponse(BaseModel):
    """A pair with player names and its derived outcome."""
    id: int
    match_id: int
    pair_number: int
    home_player1_id: Optional[int] = None
    home_player2_id: Optional[int] = None
    away_player1_id: Optional[int] = None
    away_player2_id: Optional[int] = None
    home_player1_name: Optional[str] = None
    home_player2_name: Optional[str] = None
    away_player1_name: Optional[str] = None
    away_player2_name: Optional[str] = None
    game1_home_score: int = 0
    game1_away_score: int = 0
    game2_home_score: int = 0
    game2_away_score: int = 0
    game3_home_score: int = 0
    game3_away_score: int = 0
    home_games: int = 0
    away_games: int = 0
    winner: Optional[str] = None
    home_points: int = 0
    away_points: int = 0


class MatchResponse(BaseModel):
    id: int
    home_team_id: int
    away_team_id: int
    home_team_name: Optional[str] = None
    away_team_name: Optional[str] = None
    match_date: str
    location: Optional[str] = None
    home_score: int = 0
    away_score: int = 0
    completed: bool = False
    created_at: Optional[str] = None


class MatchDetailResponse(MatchResponse):
    pairs: List[PairResponse] = []


class UpdatePairRequest(BaseModel):
    """
    Partial pair update. Only fields present in the body are applied
    (use model_dump(exclude_unset=True)); null empties a player slot.
    """
    home_player1_id: Optional[int] = None
    home_player2_id: Optional[int] = None
    away_player1_id: Optional[int] = None
    away_player2_id: Optional[int] = None
    game1_home_score: Optional[int] = Field(default=None, ge=0)
    game1_away_score: Optional[int] = Field(default=None, ge=0)
    game2_home_score: Optional[int] = Field(default=None, ge=0)
    game2_away_score: Optional[int] = Field(default=None, ge=0)
    game3_home_score: Optional[int] = Field(default=None, ge=0)
    game3_away_score: Optional[int] = Field(default=None, ge=0)


# Nomination schemas

class NominateRequest(BaseModel):
    player_id: int


class NominationResponse(BaseModel):
    id: int
    match_id: int
    player_id: int
    created_at: Optional[str] = None


# Standings and statistics schemas

class StandingResponse(BaseModel):
    """One row of the standings table."""
    team_id: int
    team_name: str
    played: int
    wins: int
    draws: int
    losses: int
    pairs_won: int
    pairs_lost: int
    pairs_diff: int
    points: int


class StandingsHistoryEntry(StandingResponse):
    position: int


class StandingsSnapshotResponse(BaseModel):
    date: str
    standings: List[StandingsHistoryEntry]


class PlayerStatisticResponse(BaseModel):
    """Per-player statistics. avg_points is formatted to one decimal place."""
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    games_played: int
    games_won: int
    games_lost: int
    total_points: int
    avg_points: str


class StatisticsLeadersResponse(BaseModel):
    top_scorer: Optional[PlayerStatisticResponse] = None
    best_win_rate: Optional[PlayerStatisticResponse] = None
    most_active: Optional[PlayerStatisticResponse] = None
