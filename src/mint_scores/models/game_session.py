# src/mint_scores/models/game_session.py
"""Model tracking one player's single game attempt per wallet address."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mint_scores.db.base import Base

VALIDATION_VALID = "VALID"
VALIDATION_INVALID = "INVALID"


class GameSession(Base):
    """Persisted session record, keyed by the lower-cased wallet address.

    Lifecycle: created (start) -> scored (end, no verdict) -> validated.
    A row with a score is terminal and never overwritten by a new start.
    """

    __tablename__ = "game_session"

    address: Mapped[str] = mapped_column(String(64), primary_key=True)
    game_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Client-reported instants are untrusted and kept verbatim.
    client_start_time: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=""
    )
    game_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    client_end_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    last_update: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # None until a verdict is stored, then VALID or INVALID.
    validation_result: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_terminal(self) -> bool:
        """Return True once a score has been attached."""
        return self.score is not None

    @property
    def is_validated(self) -> bool:
        """Return True once a verdict has been stored."""
        return self.validation_result is not None
