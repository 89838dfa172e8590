"""Shared API dependencies: service wiring, request fingerprinting and errors."""

from __future__ import annotations

import re
from typing import Annotated, Any

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse

from mint_scores.core.settings import settings
from mint_scores.db.session import SessionLocal
from mint_scores.db.time import isoformat_z, utcnow
from mint_scores.schemas.common import ErrorResponse
from mint_scores.services.anti_cheat import UNKNOWN, AntiCheatValidator
from mint_scores.services.scores import ScoreService
from mint_scores.services.session_store import RequestInfo, SessionStore, normalize_address
from mint_scores.services.tiers import TierClassifier

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Header precedence for the client IP, most specific proxy header first.
_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


class ApiError(Exception):
    """Error rendered as ``{error, code, timestamp}`` by `api_error_handler`."""

    def __init__(self, status_code: int, message: str, code: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render an `ApiError` as the uniform JSON error body."""
    body = ErrorResponse(error=exc.message, code=exc.code, timestamp=isoformat_z(utcnow()))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def bad_request(message: str, code: str) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message, code)


def require_address(value: Any, *, missing_code: str = "MISSING_ADDRESS") -> str:
    """Validate a wallet address and return its canonical form.

    Raises:
        ApiError: If the address is absent or malformed.
    """
    if value is None or value == "":
        raise bad_request("Address is required", missing_code)
    if not isinstance(value, str) or not ADDRESS_PATTERN.match(value.strip()):
        raise bad_request("Invalid Ethereum address format", "INVALID_ADDRESS_FORMAT")
    return normalize_address(value)


def get_request_info(request: Request) -> RequestInfo:
    """Extract the client IP and user agent used for device fingerprinting."""
    ip_address = UNKNOWN
    for header in _IP_HEADERS:
        raw = request.headers.get(header)
        if raw:
            # x-forwarded-for is a comma-separated chain; the first hop is the client.
            ip_address = raw.split(",")[0].strip() or UNKNOWN
            break
    user_agent = request.headers.get("user-agent") or UNKNOWN
    return RequestInfo(ip_address=ip_address, user_agent=user_agent)


def get_score_service() -> ScoreService:
    """Return a score service wired to the configured database and policies."""
    return ScoreService(
        SessionStore(SessionLocal),
        validator=AntiCheatValidator(settings.anti_cheat_policy),
        classifier=TierClassifier(settings.tier_thresholds),
    )


ScoreServiceDep = Annotated[ScoreService, Depends(get_score_service)]
RequestInfoDep = Annotated[RequestInfo, Depends(get_request_info)]
