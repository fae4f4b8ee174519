"""Initial bracket schema: competitors, tournaments, entries, matches, predictions

Revision ID: 3c1e9a7b2d40
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic
revision: str = '3c1e9a7b2d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        'competitors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('kind', sa.String(length=10), nullable=False, server_default='team'),
        sa.Column('rating', sa.Integer(), nullable=False, server_default='1000'),
        sa.Column('rank', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("kind IN ('team', 'solo')", name='ck_competitors_kind'),
    )

    op.create_table(
        'tournaments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('max_teams', sa.Integer(), nullable=False, server_default='16'),
        sa.Column('team_size', sa.Integer(), nullable=True),
        sa.Column('seeding_method', sa.String(length=20), nullable=False, server_default='STANDARD'),
        sa.Column('require_rank', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('has_qualifier', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('qualifier_matches', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qualifier_min_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qualifier_format', sa.String(length=20), nullable=False, server_default='SWISS'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='DRAFT'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('max_teams >= 2', name='ck_tournaments_max_teams'),
    )
    op.create_index('idx_tournaments_status', 'tournaments', ['status'])

    op.create_table(
        'entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('competitor_id', sa.Integer(), sa.ForeignKey('competitors.id'), nullable=False),
        sa.Column('registered_at', sa.DateTime(), nullable=False),
        sa.Column('seed_rating', sa.Integer(), nullable=True),
        sa.Column('seed', sa.Integer(), nullable=True),
        sa.Column('slot', sa.Integer(), nullable=True),
        sa.Column('qualifier_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('matches_played', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('tournament_id', 'competitor_id', name='uq_entry_tournament_competitor'),
    )
    op.create_index('idx_entries_tournament', 'entries', ['tournament_id'])

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('round', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('home_entry_id', sa.Integer(), sa.ForeignKey('entries.id'), nullable=True),
        sa.Column('away_entry_id', sa.Integer(), sa.ForeignKey('entries.id'), nullable=True),
        sa.Column('home_score', sa.Integer(), nullable=True),
        sa.Column('away_score', sa.Integer(), nullable=True),
        sa.Column('winner_entry_id', sa.Integer(), sa.ForeignKey('entries.id'), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('is_bye', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('rating_delta', sa.Integer(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('tournament_id', 'round', 'position', name='uq_match_tournament_round_position'),
        sa.CheckConstraint('round >= 1', name='ck_matches_round'),
        sa.CheckConstraint('position >= 0', name='ck_matches_position'),
    )
    op.create_index('idx_matches_tournament_status', 'matches', ['tournament_id', 'status'])

    op.create_table(
        'predictions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('match_id', sa.Integer(), sa.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('predictor_id', sa.Integer(), nullable=False),
        sa.Column('predicted_home_score', sa.Integer(), nullable=True),
        sa.Column('predicted_away_score', sa.Integer(), nullable=True),
        sa.Column('predicted_winner_entry_id', sa.Integer(), sa.ForeignKey('entries.id'), nullable=True),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('match_id', 'predictor_id', name='uq_prediction_match_predictor'),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('predictions')
    op.drop_index('idx_matches_tournament_status', table_name='matches')
    op.drop_table('matches')
    op.drop_index('idx_entries_tournament', table_name='entries')
    op.drop_table('entries')
    op.drop_index('idx_tournaments_status', table_name='tournaments')
    op.drop_table('tournaments')
    op.drop_table('competitors')
