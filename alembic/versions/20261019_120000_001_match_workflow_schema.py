"""Dogs, breeding match requests and outcomes.

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the match workflow tables."""

    # Dogs table (profile data lives with the profiles service)
    op.create_table(
        'dogs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('breed', sa.String(100), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_dogs_user_id', 'dogs', ['user_id'])

    # Match requests table
    op.create_table(
        'dog_match_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('contact_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='pending'),
        sa.Column('requester_user_id', sa.Uuid(), nullable=False),
        sa.Column('requested_user_id', sa.Uuid(), nullable=False),
        sa.Column('requester_dog_id', sa.Uuid(), nullable=False),
        sa.Column('requested_dog_id', sa.Uuid(), nullable=False),

        # Status timestamps
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('declined_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('awaiting_confirmation_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_status_changed_at', sa.DateTime(timezone=True), nullable=True),

        sa.Column('requester_notes', sa.Text(), nullable=True),
        sa.Column('responder_notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['requester_dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['requested_dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('requester_dog_id <> requested_dog_id', name='distinct_dogs_check'),
    )
    op.create_index(
        'ix_dog_match_requests_contact_status', 'dog_match_requests', ['contact_id', 'status']
    )
    op.create_index(
        'ix_dog_match_requests_requester_user_id', 'dog_match_requests', ['requester_user_id']
    )
    op.create_index(
        'ix_dog_match_requests_requested_user_id', 'dog_match_requests', ['requested_user_id']
    )

    # At most one active request per conversation
    op.create_index(
        'uq_dog_match_requests_active_contact',
        'dog_match_requests',
        ['contact_id'],
        unique=True,
        postgresql_where=sa.text(
            "status IN ('pending', 'accepted', 'awaiting_confirmation')"
        ),
    )

    # Outcomes table
    op.create_table(
        'dog_match_outcomes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('match_id', sa.Uuid(), nullable=False),
        sa.Column('outcome', sa.String(20), nullable=False),
        sa.Column('litter_size', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('verified_by_user_id', sa.Uuid(), nullable=False),
        sa.Column('verified_by_dog_id', sa.Uuid(), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['match_id'], ['dog_match_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['verified_by_dog_id'], ['dogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('match_id', name='uq_dog_match_outcomes_match_id'),
        sa.CheckConstraint('litter_size >= 0', name='litter_size_non_negative'),
        sa.CheckConstraint(
            "outcome IN ('success', 'failed', 'no_show')", name='outcome_value_check'
        ),
    )


def downgrade() -> None:
    """Drop the match workflow tables."""
    op.drop_table('dog_match_outcomes')
    op.drop_index('uq_dog_match_requests_active_contact', table_name='dog_match_requests')
    op.drop_index('ix_dog_match_requests_requested_user_id', table_name='dog_match_requests')
    op.drop_index('ix_dog_match_requests_requester_user_id', table_name='dog_match_requests')
    op.drop_index('ix_dog_match_requests_contact_status', table_name='dog_match_requests')
    op.drop_table('dog_match_requests')
    op.drop_index('ix_dogs_user_id', table_name='dogs')
    op.drop_table('dogs')
