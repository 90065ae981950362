"""Initial schema: users, projects, tracks, feedback, library, tips

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.func.now())


def upgrade() -> None:
    # ─── Identity ────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('external_id', sa.String(255), nullable=False, unique=True),
        sa.Column('email', sa.String(254), nullable=True),
        sa.Column('username', sa.String(50), nullable=True, unique=True),
        sa.Column('bio', sa.String(500), nullable=True),
        sa.Column('contact_email', sa.String(254), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('instagram', sa.String(100), nullable=True),
        sa.Column('twitter', sa.String(100), nullable=True),
        sa.Column('farcaster', sa.String(100), nullable=True),
        sa.Column('avatar_url', sa.String(1000), nullable=True),
        sa.Column('wallet_address', sa.String(42), nullable=True),
        sa.Column('stripe_account_id', sa.String(255), nullable=True),
        sa.Column('stripe_onboarding_complete', sa.Boolean(), nullable=False,
                  server_default=sa.false()),
        _created_at(),
    )

    # ─── Projects + tracks ───────────────────────────────
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('creator_id', sa.Uuid(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.String(1000), nullable=True),
        sa.Column('share_token', sa.String(64), nullable=False, unique=True),
        sa.Column('sharing_enabled', sa.Boolean(), nullable=False,
                  server_default=sa.true()),
        _created_at(),
    )
    op.create_index('idx_projects_creator', 'projects', ['creator_id'])

    op.create_table(
        'tracks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('project_id', sa.Uuid(),
                  sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('audio_url', sa.String(1000), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        _created_at(),
    )
    op.create_index('idx_tracks_project', 'tracks', ['project_id'])

    op.create_table(
        'project_metrics',
        sa.Column('project_id', sa.Uuid(),
                  sa.ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('plays', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shares', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('adds', sa.Integer(), nullable=False, server_default='0'),
    )

    # ─── Feedback ────────────────────────────────────────
    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('project_id', sa.Uuid(),
                  sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=True),
        sa.Column('track_id', sa.Uuid(),
                  sa.ForeignKey('tracks.id', ondelete='CASCADE'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp_seconds', sa.Integer(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.CheckConstraint(
            '(project_id IS NOT NULL AND track_id IS NULL) OR '
            '(project_id IS NULL AND track_id IS NOT NULL)',
            name='comments_target_check',
        ),
        sa.CheckConstraint(
            '(track_id IS NULL AND timestamp_seconds IS NULL) OR '
            '(track_id IS NOT NULL AND timestamp_seconds IS NOT NULL '
            'AND timestamp_seconds >= 0)',
            name='comments_track_timestamp_check',
        ),
    )
    op.create_index('idx_comments_project_id', 'comments', ['project_id'])
    op.create_index('idx_comments_track_id', 'comments', ['track_id'])
    op.create_index('idx_comments_user_id', 'comments', ['user_id'])
    op.create_index('idx_comments_created_at', 'comments', ['created_at'])

    # ─── Library ─────────────────────────────────────────
    op.create_table(
        'user_projects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('project_id', sa.Uuid(),
                  sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.UniqueConstraint('user_id', 'project_id', name='uq_user_projects'),
    )

    # ─── Tips + notifications ────────────────────────────
    op.create_table(
        'tips',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('creator_id', sa.Uuid(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('tipper_username', sa.String(100), nullable=True),
        sa.Column('message', sa.String(500), nullable=True),
        sa.Column('payment_reference', sa.String(255), nullable=False, unique=True),
        sa.Column('provider_payment_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index('idx_tips_creator', 'tips', ['creator_id', 'created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('kind', sa.String(30), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index('idx_notifications_user', 'notifications', ['user_id', 'is_read'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('tips')
    op.drop_table('user_projects')
    op.drop_table('comments')
    op.drop_table('project_metrics')
    op.drop_table('tracks')
    op.drop_table('projects')
    op.drop_table('users')
