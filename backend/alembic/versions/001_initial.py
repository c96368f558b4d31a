"""Initial migration - users and routes

Revision ID: 001_initial
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create routes table
    op.create_table(
        'routes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'user_id', sa.String(36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('difficulty', sa.String(20), nullable=False),
        sa.Column('scenery_description', sa.Text(), nullable=True),
        sa.Column('additional_notes', sa.Text(), nullable=True),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('object_key', sa.String(500), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        # Derived geometry
        sa.Column('center_lon', sa.Float(), nullable=True),
        sa.Column('center_lat', sa.Float(), nullable=True),
        sa.Column('center_ele', sa.Float(), nullable=True),
        sa.Column('convex_hull', sa.JSON(), nullable=True),
        sa.Column('simplified_path', sa.JSON(), nullable=True),
        sa.Column('bounding_box', sa.JSON(), nullable=True),
        sa.Column('route_length_km', sa.Float(), nullable=True),
        # Derived timing
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('average_speed_kmh', sa.Float(), nullable=True),
        sa.Column('max_elevation_gain_m', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_routes_user_id', 'routes', ['user_id'])
    op.create_index('ix_routes_center', 'routes', ['center_lat', 'center_lon'])


def downgrade() -> None:
    op.drop_index('ix_routes_center', table_name='routes')
    op.drop_index('ix_routes_user_id', table_name='routes')
    op.drop_table('routes')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
