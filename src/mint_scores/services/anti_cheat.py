"""Anti-cheat validation for reported game scores.

The validator is a pure decision function: given the stored start of a
session and a proposed end-state it returns a `Verdict`. It performs no I/O
and never mutates its inputs. The only non-determinism is the comparison of
end timestamps against the injected clock.

Checks run in a fixed order and the first failure wins:

1. score sanity
2. chronological order of server timestamps
3. no future (or unparseable) end timestamps
4. session duration ceiling
5. client/server elapsed-time consistency (an unparseable client start
   is missing time data)
6. device and IP consistency
7. score plausibility envelope
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Any, Final, Protocol

from mint_scores.db.time import Clock, as_utc, parse_client_timestamp, to_millis, utcnow

logger = logging.getLogger(__name__)

UNKNOWN: Final[str] = "unknown"

# Substrings identifying phones and tablets, matched case-insensitively.
MOBILE_USER_AGENT_TOKENS: Final[tuple[str, ...]] = (
    "mobile",
    "android",
    "iphone",
    "ipad",
    "ipod",
    "blackberry",
    "iemobile",
    "opera mini",
    "windows phone",
    "webos",
    "tablet",
    "kindle",
    "silk",
)


class RejectionReason(str, Enum):
    """Machine-readable reasons attached to an INVALID verdict."""

    INVALID_SCORE = "invalid score value"
    NOT_CHRONOLOGICAL = "time data is not chronological"
    MISSING_TIME_DATA = "missing time data"
    SESSION_TOO_LONG = "session duration is too long"
    NETWORK_DELAY_MISMATCH = "network delay mismatch"
    USER_AGENT_MISMATCH = "user agent mismatch"
    SUSPICIOUS_IP_CHANGE = "suspicious IP change"
    SCORE_TOO_LOW = "score too low"
    SCORE_TOO_HIGH = "score too high"


@dataclass(frozen=True)
class Verdict:
    """Accept/reject decision for one reported score."""

    is_valid: bool
    rejection_reason: str | None = None

    @classmethod
    def accept(cls) -> Verdict:
        return cls(is_valid=True)

    @classmethod
    def reject(cls, reason: RejectionReason) -> Verdict:
        return cls(is_valid=False, rejection_reason=reason.value)


class ScoreEnvelope(Protocol):
    """Policy mapping a session duration to the plausible score band."""

    def bounds(self, duration_ms: float) -> tuple[float, float]:
        """Return ``(min_score, max_score)`` for a session lasting ``duration_ms``."""
        ...


@dataclass(frozen=True)
class LinearScoreEnvelope:
    """Envelope bracketing a points-per-second model with slack on both sides.

    With the defaults a 5 minute game accepts 30..600 points and a 10 minute
    game accepts 60..1200 points.
    """

    min_points_per_second: float = 0.1
    max_points_per_second: float = 2.0

    def bounds(self, duration_ms: float) -> tuple[float, float]:
        seconds = max(duration_ms, 0) / 1000
        return (
            math.floor(seconds * self.min_points_per_second),
            math.ceil(seconds * self.max_points_per_second),
        )


@dataclass(frozen=True)
class AntiCheatPolicy:
    """Tolerances used by the validator, all in milliseconds."""

    # Inclusive: a session of exactly this length is accepted.
    max_session_ms: float = 30 * 60 * 1000
    network_delay_tolerance_ms: float = 35 * 1000
    clock_skew_tolerance_ms: float = 5 * 1000
    envelope: ScoreEnvelope = field(default_factory=LinearScoreEnvelope)
    mobile_tokens: tuple[str, ...] = MOBILE_USER_AGENT_TOKENS


class SessionStart(Protocol):
    """Stored start-of-game fields the validator needs."""

    address: str
    game_start_time: datetime
    client_start_time: str | None
    ip_address: str | None
    user_agent: str | None


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable copy of a session's start fields.

    Used when re-validating legacy rows where the fingerprint fields may be
    missing; those are replaced by the ``unknown`` sentinel.
    """

    address: str
    game_start_time: datetime
    client_start_time: str | None
    ip_address: str | None = UNKNOWN
    user_agent: str | None = UNKNOWN

    @classmethod
    def from_session(cls, session: SessionStart) -> SessionSnapshot:
        return cls(
            address=session.address,
            game_start_time=as_utc(session.game_start_time),
            client_start_time=session.client_start_time,
            ip_address=session.ip_address or UNKNOWN,
            user_agent=session.user_agent or UNKNOWN,
        )


def is_valid_score(score: Any) -> bool:
    """Return True for finite real numbers (booleans excluded)."""
    if isinstance(score, bool) or not isinstance(score, Real):
        return False
    return math.isfinite(score)


def is_mobile_user_agent(user_agent: str | None, tokens: tuple[str, ...] = MOBILE_USER_AGENT_TOKENS) -> bool:
    """Heuristically decide whether a user agent belongs to a phone or tablet."""
    if not user_agent:
        return False
    lowered = user_agent.lower()
    return any(token in lowered for token in tokens)


class AntiCheatValidator:
    """Decide whether a reported score is plausible for its session."""

    def __init__(self, policy: AntiCheatPolicy | None = None, clock: Clock = utcnow) -> None:
        self.policy = policy or AntiCheatPolicy()
        self._clock = clock

    def validate(
        self,
        session: SessionStart,
        client_end_time: str | None,
        server_end_time: datetime,
        observed_ip: str,
        observed_user_agent: str,
        score: Any,
    ) -> Verdict:
        """Validate a game end against its stored start.

        Args:
            session: Stored session start fields.
            client_end_time: Client-reported ISO-8601 end instant.
            server_end_time: Server-observed end instant.
            observed_ip: IP address seen on the end request.
            observed_user_agent: User agent seen on the end request.
            score: Reported score; anything but a finite number is rejected.

        Returns:
            A `Verdict`; on rejection `rejection_reason` names the first failed check.
        """
        verdict = self._evaluate(
            session, client_end_time, server_end_time, observed_ip, observed_user_agent, score
        )
        if verdict.is_valid:
            logger.debug("Accepted score %r for %s", score, session.address)
        else:
            logger.info(
                "Rejected score %r for %s: %s", score, session.address, verdict.rejection_reason
            )
        return verdict

    def _evaluate(
        self,
        session: SessionStart,
        client_end_time: str | None,
        server_end_time: datetime,
        observed_ip: str,
        observed_user_agent: str,
        score: Any,
    ) -> Verdict:
        policy = self.policy

        if not is_valid_score(score):
            return Verdict.reject(RejectionReason.INVALID_SCORE)

        server_start_ms = to_millis(session.game_start_time)
        server_end_ms = to_millis(server_end_time)
        if server_start_ms > server_end_ms:
            return Verdict.reject(RejectionReason.NOT_CHRONOLOGICAL)

        client_end = parse_client_timestamp(client_end_time)
        if client_end is None:
            return Verdict.reject(RejectionReason.MISSING_TIME_DATA)
        client_end_ms = to_millis(client_end)
        latest_allowed_ms = to_millis(self._clock()) + policy.clock_skew_tolerance_ms
        if client_end_ms > latest_allowed_ms or server_end_ms > latest_allowed_ms:
            return Verdict.reject(RejectionReason.MISSING_TIME_DATA)

        server_elapsed_ms = server_end_ms - server_start_ms
        if server_elapsed_ms > policy.max_session_ms:
            return Verdict.reject(RejectionReason.SESSION_TOO_LONG)

        client_start = parse_client_timestamp(session.client_start_time)
        if client_start is None:
            return Verdict.reject(RejectionReason.MISSING_TIME_DATA)
        client_elapsed_ms = client_end_ms - to_millis(client_start)
        if abs(client_elapsed_ms - server_elapsed_ms) > policy.network_delay_tolerance_ms:
            return Verdict.reject(RejectionReason.NETWORK_DELAY_MISMATCH)

        if observed_user_agent != session.user_agent:
            return Verdict.reject(RejectionReason.USER_AGENT_MISMATCH)
        if observed_ip != session.ip_address and not is_mobile_user_agent(
            session.user_agent, policy.mobile_tokens
        ):
            return Verdict.reject(RejectionReason.SUSPICIOUS_IP_CHANGE)

        min_score, max_score = policy.envelope.bounds(server_elapsed_ms)
        if score < min_score:
            return Verdict.reject(RejectionReason.SCORE_TOO_LOW)
        if score > max_score:
            return Verdict.reject(RejectionReason.SCORE_TOO_HIGH)

        return Verdict.accept()
