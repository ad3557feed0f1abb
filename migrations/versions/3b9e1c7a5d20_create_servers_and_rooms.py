"""create servers and rooms

Revision ID: 3b9e1c7a5d20
Revises:
Create Date: 2026-10-18 10:12:41.503118

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b9e1c7a5d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the server registry and the room listing tables."""
    op.create_table(
        "servers",
        sa.Column("host", sa.Text(), nullable=False),
        sa.Column("last_tried", sa.BigInteger(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("blacklist", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("host"),
    )
    op.create_table(
        "rooms",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("server", sa.Text(), nullable=False),
        sa.Column("alias", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("topic", sa.Text(), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("members", sa.Integer(), nullable=False),
        sa.CheckConstraint("members >= 0", name="ck_rooms_members_non_negative"),
        sa.PrimaryKeyConstraint("id", "server"),
    )


def downgrade() -> None:
    """Drop both tables."""
    op.drop_table("rooms")
    op.drop_table("servers")
