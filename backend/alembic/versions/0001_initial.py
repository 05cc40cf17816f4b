"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_table('media_assets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('alt_text', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table('banners',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('desktop_image_id', sa.Integer(), sa.ForeignKey('media_assets.id', ondelete='SET NULL'), nullable=True),
        sa.Column('mobile_image_id', sa.Integer(), sa.ForeignKey('media_assets.id', ondelete='SET NULL'), nullable=True),
        sa.Column('desktop_url', sa.Text(), nullable=False),
        sa.Column('mobile_url', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('weight', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_banners_status', 'banners', ['status'])
    op.create_index('ix_banners_start_date', 'banners', ['start_date'])
    op.create_index('ix_banners_end_date', 'banners', ['end_date'])
    op.create_table('placements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('rotation_strategy', sa.String(length=20), nullable=False, server_default='random'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_placements_slug', 'placements', ['slug'], unique=True)
    op.create_table('banner_placement',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('banner_id', sa.Integer(), sa.ForeignKey('banners.id', ondelete='CASCADE'), nullable=False),
        sa.Column('placement_id', sa.Integer(), sa.ForeignKey('placements.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('banner_id', 'placement_id', name='uq_banner_placement'),
    )
    op.create_index('ix_banner_placement_placement_id', 'banner_placement', ['placement_id'])
    # No foreign keys: history survives banner and placement deletion
    op.create_table('daily_statistics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('banner_id', sa.Integer(), nullable=False),
        sa.Column('placement_id', sa.Integer(), nullable=False),
        sa.Column('stat_date', sa.Date(), nullable=False),
        sa.Column('impressions', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('clicks', sa.BigInteger(), nullable=False, server_default='0'),
        sa.UniqueConstraint('banner_id', 'placement_id', 'stat_date', name='uq_daily_statistics'),
    )
    op.create_index('ix_daily_statistics_banner_id', 'daily_statistics', ['banner_id'])
    op.create_index('ix_daily_statistics_placement_id', 'daily_statistics', ['placement_id'])
    op.create_index('ix_daily_statistics_stat_date', 'daily_statistics', ['stat_date'])
    op.create_table('options',
        sa.Column('name', sa.String(length=191), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
    )


def downgrade():
    op.drop_table('options')
    op.drop_index('ix_daily_statistics_stat_date', table_name='daily_statistics')
    op.drop_index('ix_daily_statistics_placement_id', table_name='daily_statistics')
    op.drop_index('ix_daily_statistics_banner_id', table_name='daily_statistics')
    op.drop_table('daily_statistics')
    op.drop_index('ix_banner_placement_placement_id', table_name='banner_placement')
    op.drop_table('banner_placement')
    op.drop_index('ix_placements_slug', table_name='placements')
    op.drop_table('placements')
    op.drop_index('ix_banners_end_date', table_name='banners')
    op.drop_index('ix_banners_start_date', table_name='banners')
    op.drop_index('ix_banners_status', table_name='banners')
    op.drop_table('banners')
    op.drop_table('media_assets')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
