"""create users and scores tables

Revision ID: 5c2e7a91d0b4
Revises:
Create Date: 2025-09-14 10:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e7a91d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=True),
            sa.Column('google_id', sa.String(length=255), nullable=True),
            sa.Column('picture', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if 'scores' not in existing_tables:
        op.create_table(
            'scores',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('game_type', sa.String(length=64), nullable=False, server_default='math_duel'),
            sa.Column('achieved_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_scores_user_id', 'scores', ['user_id'])


def downgrade():
    op.drop_index('ix_scores_user_id', table_name='scores')
    op.drop_table('scores')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
