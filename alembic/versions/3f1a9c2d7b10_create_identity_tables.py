"""create_identity_tables

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Shared by tenant_user.role and invitation.role; created once in upgrade()
tenant_role = postgresql.ENUM('OWNER', 'ADMIN', 'MEMBER', name='tenant_role', create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create user, tenant, membership, refresh token, invitation and item tables."""
    tenant_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_user_id', 'user', ['id'])
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'tenant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tenant_id', 'tenant', ['id'])
    op.create_index('ix_tenant_slug', 'tenant', ['slug'], unique=True)

    op.create_table(
        'tenant_user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', tenant_role, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'tenant_id', name='uq_tenant_user_user_id_tenant_id'),
    )
    op.create_index('ix_tenant_user_id', 'tenant_user', ['id'])
    op.create_index('ix_tenant_user_user_id', 'tenant_user', ['user_id'])
    op.create_index('ix_tenant_user_tenant_id', 'tenant_user', ['tenant_id'])

    op.create_table(
        'refresh_token',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_refresh_token_id', 'refresh_token', ['id'])
    op.create_index('ix_refresh_token_user_id', 'refresh_token', ['user_id'])
    op.create_index('ix_refresh_token_token_hash', 'refresh_token', ['token_hash'], unique=True)

    op.create_table(
        'invitation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('role', tenant_role, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('invited_by', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_invitation_id', 'invitation', ['id'])
    op.create_index('ix_invitation_email', 'invitation', ['email'])
    op.create_index('ix_invitation_token', 'invitation', ['token'], unique=True)
    op.create_index('ix_invitation_tenant_id', 'invitation', ['tenant_id'])

    op.create_table(
        'item',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_item_id', 'item', ['id'])
    op.create_index('ix_item_tenant_id', 'item', ['tenant_id'])
    # Newest-first listing per tenant
    op.create_index('idx_item_tenant_created', 'item', ['tenant_id', 'created_at'])


def downgrade() -> None:
    """Drop all identity tables and the tenant_role enum."""
    op.drop_table('item')
    op.drop_table('invitation')
    op.drop_table('refresh_token')
    op.drop_table('tenant_user')
    op.drop_table('tenant')
    op.drop_table('user')
    tenant_role.drop(op.get_bind(), checkfirst=True)
