"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ErrorResponse
from .scores import (
    GameEndRequest,
    GameEndResponse,
    GameStartRequest,
    GameStartResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    PriceTierResponse,
    ScoreEntryResponse,
    ScoreStatsResponse,
    SessionStatsResponse,
    ValidateScoreRequest,
    ValidateScoreResponse,
)

__all__ = [
    "ErrorResponse",
    "GameStartRequest", "GameStartResponse",
    "GameEndRequest", "GameEndResponse",
    "ValidateScoreRequest", "ValidateScoreResponse",
    "ScoreEntryResponse", "PriceTierResponse",
    "SessionStatsResponse",
    "LeaderboardEntry", "LeaderboardResponse", "ScoreStatsResponse",
]
