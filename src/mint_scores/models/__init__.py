"""SQLAlchemy models for the Mint Scores service."""

from .game_session import VALIDATION_INVALID, VALIDATION_VALID, GameSession

__all__ = [
    "GameSession",
    "VALIDATION_VALID",
    "VALIDATION_INVALID",
]
