"""create game_session

Revision ID: 3b1f9c2d7a10
Revises:
Create Date: 2026-10-19 09:12:44.310522

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f9c2d7a10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the one-row-per-address game session table."""
    op.create_table(
        "game_session",
        sa.Column("address", sa.String(length=64), primary_key=True),
        sa.Column("game_start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("client_start_time", sa.Text(), nullable=False, server_default=""),
        sa.Column("game_end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("client_end_time", sa.Text(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("last_update", sa.DateTime(timezone=True), nullable=False),
        sa.Column("validation_result", sa.String(length=16), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
    )
    op.create_index("ix_game_session_score", "game_session", ["score"])
    op.create_index("ix_game_session_validation_result", "game_session", ["validation_result"])


def downgrade() -> None:
    """Drop the game session table."""
    op.drop_index("ix_game_session_validation_result", table_name="game_session")
    op.drop_index("ix_game_session_score", table_name="game_session")
    op.drop_table("game_session")
