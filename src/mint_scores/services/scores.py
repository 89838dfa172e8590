"""Score workflows: finishing a game and re-validating a stored score.

`ScoreService` is stateless across calls. It coordinates the session store,
the anti-cheat validator and the tier classifier; all state lives in the store.

A rejected score is a normal, successful pipeline run (``success=True`` with an
INVALID verdict). ``success=False`` means the pipeline itself could not finish,
for example because the session is missing or a write failed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final

from mint_scores.db.time import Clock, as_utc, isoformat_z, utcnow
from mint_scores.models.game_session import VALIDATION_INVALID, VALIDATION_VALID, GameSession
from mint_scores.services.anti_cheat import (
    UNKNOWN,
    AntiCheatValidator,
    RejectionReason,
    SessionSnapshot,
    is_valid_score,
)
from mint_scores.services.session_store import (
    RequestInfo,
    ScoreStats,
    SessionStats,
    SessionStore,
)
from mint_scores.services.store_errors import (
    SessionExistsError,
    SessionNotFoundError,
    SessionStoreError,
)
from mint_scores.services.tiers import PriceTier, TierClassifier

logger = logging.getLogger(__name__)

NO_SESSION_FOUND: Final[str] = "No game session found for this address"
SESSION_LOOKUP_FAILED: Final[str] = "Failed to get game session"
SCORE_ALREADY_SUBMITTED: Final[str] = "Score already submitted for this address"
UPDATE_FAILED: Final[str] = "Failed to update game session with score data"
SAVE_FAILED: Final[str] = "Failed to save validation result"
NO_SCORE_FOUND: Final[str] = "No score found for this address"
SCORE_LOOKUP_FAILED: Final[str] = "Failed to get score"


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of a scoring workflow."""

    success: bool
    validation_result: str
    price_tier: PriceTier
    rejection_reason: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.validation_result == VALIDATION_VALID

    @classmethod
    def failure(cls, reason: str) -> ScoreResult:
        """Build a failed pipeline result; failures never grant a discount."""
        return cls(
            success=False,
            validation_result=VALIDATION_INVALID,
            price_tier=PriceTier.C_TIER,
            rejection_reason=reason,
        )


class ScoreService:
    """Coordinate session persistence, anti-cheat validation and tiering.

    ``ScoreResult.success`` does not mean the score was accepted: a rejected
    score still completes the pipeline and comes back with ``success=True``
    and an INVALID verdict. Callers deciding accept/reject must check
    ``ScoreResult.is_valid``; the ``/scores/end`` endpoint answers such a
    result with 400 ``ANTI_CHEAT_REJECTION``.
    """

    def __init__(
        self,
        store: SessionStore,
        validator: AntiCheatValidator | None = None,
        classifier: TierClassifier | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.validator = validator or AntiCheatValidator(clock=clock)
        self.classifier = classifier or TierClassifier()
        self._clock = clock

    def now(self) -> datetime:
        """Return the current instant from the injected clock."""
        return self._clock()

    def start_game(self, address: str, request_info: RequestInfo | None = None) -> datetime:
        """Start a game session; store errors propagate to the caller.

        Raises:
            SessionExistsError: If the address already finished its attempt.
            SessionStoreError: On any other store failure.
        """
        return self.store.create_session(address, request_info)

    def process_game_end(
        self,
        address: str,
        score: Any,
        client_end_time: str | None,
        request_info: RequestInfo | None = None,
    ) -> ScoreResult:
        """Validate, persist and tier the score reported at the end of a game.

        Args:
            address: Wallet address of the player.
            score: Reported score.
            client_end_time: Client-reported ISO-8601 end instant.
            request_info: Fingerprint of the end request.

        Returns:
            A `ScoreResult`. INVALID verdicts are returned with ``success=True``.
        """
        info = request_info or RequestInfo()
        try:
            session = self.store.get_session(address)
        except SessionStoreError:
            logger.exception("Could not load game session for %s", address)
            return self._fail(address, SESSION_LOOKUP_FAILED)

        if session is None:
            return self._fail(address, NO_SESSION_FOUND)
        if session.is_terminal:
            return self._fail(address, SCORE_ALREADY_SUBMITTED)
        if not is_valid_score(score):
            # Nothing sensible can be stored; the session stays open.
            return self._fail(address, RejectionReason.INVALID_SCORE.value)

        server_end_time = self._clock()
        verdict = self.validator.validate(
            SessionSnapshot.from_session(session),
            client_end_time,
            server_end_time,
            info.ip_address or UNKNOWN,
            info.user_agent or UNKNOWN,
            score,
        )

        try:
            self.store.update_session(address, score, server_end_time, client_end_time, info)
        except SessionExistsError:
            return self._fail(address, SCORE_ALREADY_SUBMITTED)
        except SessionNotFoundError:
            return self._fail(address, UPDATE_FAILED)
        except SessionStoreError:
            logger.exception("Could not store score for %s", address)
            return self._fail(address, UPDATE_FAILED)

        validation_result = VALIDATION_VALID if verdict.is_valid else VALIDATION_INVALID
        try:
            saved = self.store.save_session_with_validation(
                address, validation_result, verdict.rejection_reason
            )
        except SessionStoreError:
            logger.exception("Could not store verdict for %s", address)
            return self._fail(address, SAVE_FAILED)

        return self._result_for(saved)

    def validate_existing_score(self, address: str) -> ScoreResult:
        """Force validation of a stored score that has no verdict yet.

        Idempotent: a stored verdict is returned as is, without re-validating
        or writing. Sessions created before the fingerprint fields existed are
        validated with ``unknown`` in their place; missing end instants default
        to now.
        """
        try:
            session = self.store.get_session(address)
        except SessionStoreError:
            logger.exception("Could not load score for %s", address)
            return self._fail(address, SCORE_LOOKUP_FAILED)

        if session is None or not is_valid_score(session.score):
            return self._fail(address, NO_SCORE_FOUND)
        if session.is_validated:
            return self._result_for(session)

        now = self._clock()
        server_end_time = as_utc(session.game_end_time) if session.game_end_time else now
        client_end_time = session.client_end_time or isoformat_z(now)
        snapshot = SessionSnapshot.from_session(session)
        verdict = self.validator.validate(
            snapshot,
            client_end_time,
            server_end_time,
            snapshot.ip_address or UNKNOWN,
            snapshot.user_agent or UNKNOWN,
            session.score,
        )

        validation_result = VALIDATION_VALID if verdict.is_valid else VALIDATION_INVALID
        try:
            saved = self.store.save_session_with_validation(
                address, validation_result, verdict.rejection_reason
            )
        except SessionStoreError:
            logger.exception("Could not store verdict for %s", address)
            return self._fail(address, SAVE_FAILED)

        return self._result_for(saved)

    def get_price_tier_for_address(self, address: str) -> PriceTier:
        """Return the discount tier for ``address``, failing closed to the lowest tier."""
        try:
            session = self.store.get_session(address)
        except SessionStoreError:
            logger.exception("Tier lookup failed for %s", address)
            return PriceTier.C_TIER
        if session is None:
            return PriceTier.C_TIER
        return self.classifier.classify(session.score, session.validation_result)

    def get_score(self, address: str) -> GameSession | None:
        """Return the stored session for ``address``; store errors propagate."""
        return self.store.get_session(address)

    def get_stats(self) -> SessionStats:
        return self.store.get_session_stats()

    def list_scores(self, limit: int = 100) -> list[GameSession]:
        return self.store.list_scores(limit)

    def get_score_stats(self) -> ScoreStats:
        return self.store.get_score_stats()

    def tier_for(self, session: GameSession) -> PriceTier:
        """Return the tier implied by a stored session."""
        return self.classifier.classify(session.score, session.validation_result)

    def _result_for(self, session: GameSession) -> ScoreResult:
        validation_result = session.validation_result or VALIDATION_INVALID
        return ScoreResult(
            success=True,
            validation_result=validation_result,
            price_tier=self.classifier.classify(session.score, validation_result),
            rejection_reason=session.rejection_reason,
        )

    @staticmethod
    def _fail(address: str, reason: str) -> ScoreResult:
        logger.warning("Score pipeline failed for %s: %s", address, reason)
        return ScoreResult.failure(reason)
