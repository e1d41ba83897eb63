"""001_initial_schema

Revision ID: 001
Revises: 
Create Date: 2024-01-08 19:00:00.000000

Initial league schema: teams, users, players, matches, match_pairs and
match_nominations.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('ADMIN', 'LEAGUE_MANAGER', 'TEAM_MANAGER', 'OBSERVER', name='userrole')


def _player_column(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey('players.id', ondelete='SET NULL'), nullable=True)


def _score_column(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=True, server_default='0')


def upgrade() -> None:
    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('home_day', sa.String(), nullable=True),
        sa.Column('home_time', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_teams_name', 'teams', ['name'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_users_username', 'users', ['username'])

    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_players_team', 'players', ['team_id'])
    op.create_index('idx_players_name', 'players', ['name'])

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('home_team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('away_team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('match_date', sa.Date(), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('home_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('away_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_matches_date', 'matches', ['match_date'])
    op.create_index('idx_matches_home_team', 'matches', ['home_team_id'])
    op.create_index('idx_matches_away_team', 'matches', ['away_team_id'])
    op.create_index('idx_matches_completed', 'matches', ['completed'])

    op.create_table(
        'match_pairs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('match_id', sa.Integer(), sa.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pair_number', sa.Integer(), nullable=False),
        _player_column('home_player1_id'),
        _player_column('home_player2_id'),
        _player_column('away_player1_id'),
        _player_column('away_player2_id'),
        *[_score_column(f'game{n}_{side}_score') for n in (1, 2, 3) for side in ('home', 'away')],
        sa.UniqueConstraint('match_id', 'pair_number'),
        sa.CheckConstraint('pair_number >= 1 AND pair_number <= 9', name='ck_match_pairs_pair_number'),
    )
    op.create_index('idx_match_pairs_match', 'match_pairs', ['match_id'])

    op.create_table(
        'match_nominations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('match_id', sa.Integer(), sa.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('match_id', 'player_id'),
    )
    op.create_index('idx_match_nominations_match', 'match_nominations', ['match_id'])


def downgrade() -> None:
    op.drop_table('match_nominations')
    op.drop_table('match_pairs')
    op.drop_table('matches')
    op.drop_table('players')
    op.drop_table('users')
    op.drop_table('teams')
    user_role.drop(op.get_bind(), checkfirst=True)
