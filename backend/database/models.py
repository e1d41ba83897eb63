"""
SQLAlchemy ORM models for the badminton league system.
"""

from typing import List
import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.database.db import Base


class UserRole(str, enum.Enum):
    """User role enum."""

    ADMIN = "admin"
    LEAGUE_MANAGER = "league_manager"
    TEAM_MANAGER = "team_manager"
    OBSERVER = "observer"


class Team(Base):
    """League teams."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    home_day = Column(String, nullable=True)  # e.g. "Tuesday"
    home_time = Column(String, nullable=True)  # e.g. "19:30"
    address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    players = relationship("Player", back_populates="team", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_teams_name", "name"),)


class User(Base):
    """User accounts with username/password authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.OBSERVER)
    team_id = Column(
        Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )  # Team managed by a team_manager
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    team = relationship("Team")

    __table_args__ = (Index("idx_users_username", "username"),)


class Player(Base):
    """Player profiles. Every player belongs to exactly one team."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    team = relationship("Team", back_populates="players")

    __table_args__ = (
        Index("idx_players_team", "team_id"),
        Index("idx_players_name", "name"),
    )


class Match(Base):
    """A fixture between two teams, made up of nine pairs."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    home_team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    match_date = Column(Date, nullable=False)
    location = Column(String, nullable=True)
    home_score = Column(Integer, default=0, nullable=False)  # Pairs won by home (derived)
    away_score = Column(Integer, default=0, nullable=False)  # Pairs won by away (derived)
    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])
    pairs = relationship(
        "MatchPair",
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="MatchPair.pair_number",
    )
    nominations = relationship(
        "MatchNomination", back_populates="match", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_matches_date", "match_date"),
        Index("idx_matches_home_team", "home_team_id"),
        Index("idx_matches_away_team", "away_team_id"),
        Index("idx_matches_completed", "completed"),
    )

    @property
    def team_ids(self) -> List[int]:
        """Get [home_team_id, away_team_id]."""
        return [self.home_team_id, self.away_team_id]


class MatchPair(Base):
    """One of the nine doubles sub-contests of a match, best of three games."""

    __tablename__ = "match_pairs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    pair_number = Column(Integer, nullable=False)
    # Player slots are nullable ("TBD") and cleared when the player is deleted
    home_player1_id = Column(Integer, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    home_player2_id = Column(Integer, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    away_player1_id = Column(Integer, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    away_player2_id = Column(Integer, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    game1_home_score = Column(Integer, default=0, nullable=True)
    game1_away_score = Column(Integer, default=0, nullable=True)
    game2_home_score = Column(Integer, default=0, nullable=True)
    game2_away_score = Column(Integer, default=0, nullable=True)
    game3_home_score = Column(Integer, default=0, nullable=True)
    game3_away_score = Column(Integer, default=0, nullable=True)

    # Relationships
    match = relationship("Match", back_populates="pairs")

    __table_args__ = (
        UniqueConstraint("match_id", "pair_number"),
        CheckConstraint("pair_number >= 1 AND pair_number <= 9", name="ck_match_pairs_pair_number"),
        Index("idx_match_pairs_match", "match_id"),
    )


class MatchNomination(Base):
    """Join table (Match ↔ Player): player is available for selection in a match."""

    __tablename__ = "match_nominations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    match = relationship("Match", back_populates="nominations")
    player = relationship("Player")

    __table_args__ = (
        UniqueConstraint("match_id", "player_id"),
        Index("idx_match_nominations_match", "match_id"),
    )
