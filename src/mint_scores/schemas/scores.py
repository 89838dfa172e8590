# src/mint_scores/schemas/scores.py
"""Score- and session-related Pydantic schemas.

Request bodies accept loosely typed values so the endpoints can answer with
specific error codes instead of generic validation failures.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GameStartRequest(_CamelModel):
    """Body of ``POST /scores/start``."""

    address: Any = None
    client_timestamp: Any = Field(default=None, alias="clientTimestamp")


class GameEndRequest(_CamelModel):
    """Body of ``POST /scores/end``; ``score`` may be an integer or integer string."""

    address: Any = None
    score: Any = None
    client_timestamp: Any = Field(default=None, alias="clientTimestamp")


class ValidateScoreRequest(_CamelModel):
    """Body of ``POST /scores/validate``."""

    address: Any = None


class GameStartResponse(_CamelModel):
    success: bool
    message: str
    server_timestamp: str = Field(..., alias="serverTimestamp")


class GameEndResponse(_CamelModel):
    success: bool
    validation: str
    price_tier: int = Field(..., alias="priceTier")
    server_timestamp: str = Field(..., alias="serverTimestamp")


class ValidateScoreResponse(_CamelModel):
    success: bool
    message: str
    validation_result: str = Field(..., alias="validationResult")
    rejection_reason: str | None = Field(default=None, alias="rejectionReason")
    price_tier: int = Field(..., alias="priceTier")


class ScoreEntryResponse(_CamelModel):
    """Stored score for one address; fields are null until the game ends."""

    success: bool
    address: str
    score: int | None
    validation: str | None
    price_tier: int | None = Field(..., alias="priceTier")
    timestamp: str


class PriceTierResponse(_CamelModel):
    address: str
    price_tier: int = Field(..., alias="priceTier")


class SessionStatsResponse(BaseModel):
    total: int
    completed: int
    invalid: int


class LeaderboardEntry(_CamelModel):
    address: str
    score: int
    validation_result: str | None = Field(default=None, alias="validationResult")
    game_end_time: str | None = Field(default=None, alias="gameEndTime")


class ScoreStatsResponse(_CamelModel):
    total_scores: int = Field(..., alias="totalScores")
    average_score: float = Field(..., alias="averageScore")
    highest_score: int = Field(..., alias="highestScore")
    lowest_score: int = Field(..., alias="lowestScore")


class LeaderboardResponse(_CamelModel):
    success: bool
    data: list[LeaderboardEntry]
    stats: ScoreStatsResponse
    timestamp: str
    note: str
