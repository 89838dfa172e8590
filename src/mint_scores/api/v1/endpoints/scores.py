# src/mint_scores/api/v1/endpoints/scores.py
"""Game session and score endpoints for the Mint Scores API."""

from __future__ import annotations

import logging
import re
from typing import Any

from fastapi import APIRouter, status

from mint_scores.core.settings import settings
from mint_scores.db.time import isoformat_z
from mint_scores.models.game_session import VALIDATION_INVALID, GameSession
from mint_scores.schemas.scores import (
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
from mint_scores.services.session_store import RequestInfo
from mint_scores.services.store_errors import SessionStoreError
from mint_scores.services.tiers import PriceTier

from ..dependencies import (
    ApiError,
    RequestInfoDep,
    ScoreServiceDep,
    bad_request,
    require_address,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scores", tags=["scores"])

LEADERBOARD_NOTE = (
    "Use POST /scores/start to begin a game session, then POST /scores/end "
    "to submit scores with full validation."
)

_INTEGER_PATTERN = re.compile(r"^-?\d+$")


def _parse_score(raw: Any) -> int:
    """Accept an integer or an integer string within the submittable range."""
    value: int | None = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str) and _INTEGER_PATTERN.match(raw.strip()):
        value = int(raw.strip())
    if value is None or not 0 <= value <= settings.max_submitted_score:
        raise bad_request(
            f"Score must be an integer between 0 and {settings.max_submitted_score}",
            "INVALID_SCORE_RANGE",
        )
    return value


def _database_error(message: str) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, "DATABASE_ERROR")


def _leaderboard_entry(session: GameSession) -> LeaderboardEntry:
    return LeaderboardEntry(
        address=session.address,
        score=session.score,
        validation_result=session.validation_result,
        game_end_time=isoformat_z(session.game_end_time) if session.game_end_time else None,
    )


@router.get("", response_model=LeaderboardResponse)
def list_scores(service: ScoreServiceDep) -> LeaderboardResponse:
    """Return the highest stored scores with aggregate statistics."""
    try:
        sessions = service.list_scores(settings.leaderboard_limit)
        stats = service.get_score_stats()
    except SessionStoreError as exc:
        logger.warning("Leaderboard query failed: %s", exc)
        raise _database_error("Failed to fetch scores") from exc

    return LeaderboardResponse(
        success=True,
        data=[_leaderboard_entry(session) for session in sessions],
        stats=ScoreStatsResponse(
            total_scores=stats.total_scores,
            average_score=stats.average_score,
            highest_score=stats.highest_score,
            lowest_score=stats.lowest_score,
        ),
        timestamp=isoformat_z(service.now()),
        note=LEADERBOARD_NOTE,
    )


@router.post("", status_code=status.HTTP_410_GONE)
def submit_score_directly() -> None:
    """Reject direct score submission; scores only arrive through a game session."""
    raise ApiError(
        status.HTTP_410_GONE,
        "Direct score submission is no longer supported. "
        "Use POST /scores/start and POST /scores/end instead.",
        "DEPRECATED_ENDPOINT",
    )


@router.post("/start", response_model=GameStartResponse)
def start_game(
    payload: GameStartRequest,
    service: ScoreServiceDep,
    request_info: RequestInfoDep,
) -> GameStartResponse:
    """Start (or restart) the single game attempt of an address."""
    address = require_address(payload.address)
    client_timestamp = payload.client_timestamp
    if not isinstance(client_timestamp, str) or not client_timestamp:
        raise bad_request("Client timestamp is required", "MISSING_CLIENT_TIMESTAMP")

    info = RequestInfo(
        ip_address=request_info.ip_address,
        user_agent=request_info.user_agent,
        client_timestamp=client_timestamp,
    )
    try:
        started_at = service.start_game(address, info)
    except SessionStoreError as exc:
        raise bad_request(str(exc), "SESSION_CREATION_ERROR") from exc

    return GameStartResponse(
        success=True,
        message="Game session started successfully",
        server_timestamp=isoformat_z(started_at),
    )


@router.post("/end", response_model=GameEndResponse)
def end_game(
    payload: GameEndRequest,
    service: ScoreServiceDep,
    request_info: RequestInfoDep,
) -> GameEndResponse:
    """Submit the score of a running game and return its verdict and tier."""
    if payload.address in (None, "") or payload.score is None:
        raise bad_request("Address and score are required", "MISSING_REQUIRED_FIELDS")
    client_end_time = payload.client_timestamp
    if not isinstance(client_end_time, str) or not client_end_time:
        raise bad_request("Client timestamp is required", "MISSING_CLIENT_TIMESTAMP")
    address = require_address(payload.address)
    score = _parse_score(payload.score)

    result = service.process_game_end(address, score, client_end_time, request_info)
    if not result.success:
        raise bad_request(
            result.rejection_reason or "Failed to process score",
            "SCORE_PROCESSING_ERROR",
        )
    if not result.is_valid:
        raise bad_request(
            result.rejection_reason or "Score rejected",
            "ANTI_CHEAT_REJECTION",
        )

    return GameEndResponse(
        success=True,
        validation=result.validation_result,
        price_tier=int(result.price_tier),
        server_timestamp=isoformat_z(service.now()),
    )


@router.post("/validate", response_model=ValidateScoreResponse)
def validate_score(payload: ValidateScoreRequest, service: ScoreServiceDep) -> ValidateScoreResponse:
    """Force validation of a stored score that has no verdict yet."""
    address = require_address(payload.address)
    result = service.validate_existing_score(address)
    if not result.success:
        raise bad_request(
            result.rejection_reason or "Failed to validate score",
            "VALIDATION_FAILED",
        )

    return ValidateScoreResponse(
        success=True,
        message=f"Score validation completed for address {address}",
        validation_result=result.validation_result,
        rejection_reason=result.rejection_reason,
        price_tier=int(result.price_tier),
    )


@router.get("/stats", response_model=SessionStatsResponse)
def session_stats(service: ScoreServiceDep) -> SessionStatsResponse:
    """Return counts of all, VALID and INVALID sessions."""
    try:
        stats = service.get_stats()
    except SessionStoreError as exc:
        logger.warning("Session stats query failed: %s", exc)
        raise _database_error("Failed to fetch session stats") from exc
    return SessionStatsResponse(total=stats.total, completed=stats.completed, invalid=stats.invalid)


@router.get("/{address}/tier", response_model=PriceTierResponse)
def price_tier(address: str, service: ScoreServiceDep) -> PriceTierResponse:
    """Return the discount tier of an address; lookup failures map to the lowest tier."""
    address = require_address(address)
    return PriceTierResponse(
        address=address,
        price_tier=int(service.get_price_tier_for_address(address)),
    )


@router.get("/{address}", response_model=ScoreEntryResponse)
def get_score(address: str, service: ScoreServiceDep) -> ScoreEntryResponse:
    """Return the stored score of an address, validating it first if needed."""
    address = require_address(address)
    try:
        session = service.get_score(address)
    except SessionStoreError as exc:
        logger.warning("Score lookup failed for %s: %s", address, exc)
        raise _database_error("Failed to fetch score") from exc
    if session is None:
        raise ApiError(
            status.HTTP_404_NOT_FOUND,
            "No score found for this address",
            "SCORE_NOT_FOUND",
        )

    validation: str | None = session.validation_result
    tier: int | None = None
    if session.score is not None:
        if validation is None:
            result = service.validate_existing_score(address)
            if result.success:
                validation, tier = result.validation_result, int(result.price_tier)
            else:
                validation, tier = VALIDATION_INVALID, int(PriceTier.C_TIER)
        else:
            tier = int(service.tier_for(session))

    return ScoreEntryResponse(
        success=True,
        address=session.address,
        score=session.score,
        validation=validation,
        price_tier=tier,
        timestamp=isoformat_z(service.now()),
    )
