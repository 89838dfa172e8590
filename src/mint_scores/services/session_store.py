"""Persistence-backed CRUD for game sessions, one row per wallet address.

Every mutation is a single conditional statement so concurrent requests for
the same address cannot interleave partial writes:

- starting a game is an upsert that only overwrites a non-terminal row;
- attaching a score only matches rows without a score;
- attaching a verdict only matches scored rows without a verdict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from mint_scores.db.time import Clock, utcnow
from mint_scores.models.game_session import (
    VALIDATION_INVALID,
    VALIDATION_VALID,
    GameSession,
)
from mint_scores.services.store_errors import (
    SessionExistsError,
    SessionNotFoundError,
    SessionStoreError,
    StoreErrorKind,
    translate_store_errors,
)

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

__all__ = [
    "RequestInfo",
    "ScoreStats",
    "SessionStats",
    "SessionStore",
    "normalize_address",
]


def normalize_address(address: str) -> str:
    """Return the canonical (trimmed, lower-cased) form of a wallet address."""
    return address.strip().lower()


@dataclass(frozen=True)
class RequestInfo:
    """Request fingerprint captured by the HTTP layer."""

    ip_address: str | None = None
    user_agent: str | None = None
    client_timestamp: str | None = None


@dataclass(frozen=True)
class SessionStats:
    """Counts of all sessions, VALID sessions and INVALID sessions."""

    total: int
    completed: int
    invalid: int


@dataclass(frozen=True)
class ScoreStats:
    """Aggregates over sessions that carry a score."""

    total_scores: int
    average_score: float
    highest_score: int
    lowest_score: int


class SessionStore:
    """Address-keyed session persistence on top of a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session], clock: Clock = utcnow) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory producing sessions bound to the target database.
            clock: Source of server-observed instants.
        """
        self._session_factory = session_factory
        self._clock = clock

    def create_session(self, address: str, request_info: RequestInfo | None = None) -> datetime:
        """Start (or restart) the game for ``address``.

        An abandoned, unscored session is overwritten in place. A scored
        session is terminal and blocks the start.

        Returns:
            The server-observed start instant.

        Raises:
            SessionExistsError: If the address already has a scored session.
            SessionStoreError: On any store failure.
        """
        address = normalize_address(address)
        info = request_info or RequestInfo()
        now = self._clock()
        values: dict[str, Any] = {
            "address": address,
            "game_start_time": now,
            "client_start_time": info.client_timestamp or "",
            "game_end_time": None,
            "client_end_time": None,
            "score": None,
            "last_update": now,
            "validation_result": None,
            "rejection_reason": None,
            "ip_address": info.ip_address,
            "user_agent": info.user_agent,
        }

        with translate_store_errors("create game session"), self._session_factory.begin() as db:
            insert = self._insert_for(db)
            stmt = insert(GameSession).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[GameSession.address],
                set_={key: stmt.excluded[key] for key in values if key != "address"},
                where=GameSession.score.is_(None),
            )
            result = db.execute(stmt)
            if result.rowcount == 0:
                raise SessionExistsError(address)

        logger.info("Started game session for %s", address)
        return now

    def get_session(self, address: str) -> GameSession | None:
        """Return the session stored for ``address``, or None."""
        address = normalize_address(address)
        with translate_store_errors("get game session"), self._session_factory() as db:
            return self._load(db, address)

    def update_session(
        self,
        address: str,
        score: int,
        game_end_time: datetime,
        client_end_time: str | None = None,
        request_info: RequestInfo | None = None,
    ) -> GameSession:
        """Attach the score and end instants to an existing, unscored session.

        Raises:
            SessionNotFoundError: If no session exists for the address.
            SessionExistsError: If the session already carries a score.
            SessionStoreError: On any store failure.
        """
        address = normalize_address(address)
        with translate_store_errors("update game session"), self._session_factory.begin() as db:
            result = db.execute(
                update(GameSession)
                .where(GameSession.address == address, GameSession.score.is_(None))
                .values(
                    score=score,
                    game_end_time=game_end_time,
                    client_end_time=client_end_time,
                    last_update=self._clock(),
                )
                .execution_options(synchronize_session=False)
            )
            session = self._load(db, address)
            if result.rowcount == 0:
                if session is None:
                    raise SessionNotFoundError(address)
                raise SessionExistsError(address)
            if session is None:  # pragma: no cover - row vanished inside our own transaction
                raise SessionNotFoundError(address)

        if request_info is not None:
            logger.debug(
                "Score for %s submitted from ip=%s ua=%s",
                address,
                request_info.ip_address,
                request_info.user_agent,
            )
        logger.info("Recorded score %s for %s", score, address)
        return session

    def save_session_with_validation(
        self,
        address: str,
        validation_result: str,
        rejection_reason: str | None = None,
    ) -> GameSession:
        """Attach a verdict to a scored session.

        The write only matches a scored row without a verdict. If a verdict is
        already stored the existing row is returned unchanged, which keeps
        concurrent re-validations idempotent.

        Raises:
            ValueError: If ``validation_result`` is neither VALID nor INVALID.
            SessionNotFoundError: If no session exists for the address.
            SessionStoreError: With kind CONFLICT if the session has no score yet.
        """
        if validation_result not in (VALIDATION_VALID, VALIDATION_INVALID):
            raise ValueError(f"Unknown validation result: {validation_result!r}")
        address = normalize_address(address)
        reason = rejection_reason if validation_result == VALIDATION_INVALID else None

        with translate_store_errors("save validation result"), self._session_factory.begin() as db:
            result = db.execute(
                update(GameSession)
                .where(
                    GameSession.address == address,
                    GameSession.score.is_not(None),
                    GameSession.validation_result.is_(None),
                )
                .values(
                    validation_result=validation_result,
                    rejection_reason=reason,
                    last_update=self._clock(),
                )
                .execution_options(synchronize_session=False)
            )
            session = self._load(db, address)
            if session is None:
                raise SessionNotFoundError(address)
            if result.rowcount == 0:
                if session.score is None:
                    raise SessionStoreError(
                        f"Score not yet submitted for address {address}",
                        kind=StoreErrorKind.CONFLICT,
                    )
                logger.info(
                    "Verdict for %s already stored as %s", address, session.validation_result
                )
                return session

        logger.info("Stored verdict %s for %s", validation_result, address)
        return session

    def get_session_stats(self) -> SessionStats:
        """Return counts of all, VALID and INVALID sessions."""
        stmt = select(
            func.count(),
            func.coalesce(
                func.sum(case((GameSession.validation_result == VALIDATION_VALID, 1), else_=0)),
                0,
            ),
            func.coalesce(
                func.sum(case((GameSession.validation_result == VALIDATION_INVALID, 1), else_=0)),
                0,
            ),
        ).select_from(GameSession)
        with translate_store_errors("get session stats"), self._session_factory() as db:
            total, completed, invalid = db.execute(stmt).one()
        return SessionStats(total=int(total), completed=int(completed), invalid=int(invalid))

    def list_scores(self, limit: int = 100) -> list[GameSession]:
        """Return scored sessions, highest score first."""
        stmt = (
            select(GameSession)
            .where(GameSession.score.is_not(None))
            .order_by(GameSession.score.desc(), GameSession.last_update.asc())
            .limit(limit)
        )
        with translate_store_errors("list scores"), self._session_factory() as db:
            sessions = list(db.scalars(stmt))
            db.expunge_all()
        return sessions

    def get_score_stats(self) -> ScoreStats:
        """Return count, average, maximum and minimum over scored sessions."""
        stmt = select(
            func.count(GameSession.score),
            func.avg(GameSession.score),
            func.max(GameSession.score),
            func.min(GameSession.score),
        )
        with translate_store_errors("get score stats"), self._session_factory() as db:
            count, average, highest, lowest = db.execute(stmt).one()
        if not count:
            return ScoreStats(total_scores=0, average_score=0.0, highest_score=0, lowest_score=0)
        return ScoreStats(
            total_scores=int(count),
            average_score=float(average),
            highest_score=int(highest),
            lowest_score=int(lowest),
        )

    @staticmethod
    def _load(db: Session, address: str) -> GameSession | None:
        session = db.get(GameSession, address, populate_existing=True)
        if session is not None:
            db.expunge(session)
        return session

    @staticmethod
    def _insert_for(db: Session) -> Any:
        dialect = db.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect]
        except KeyError as err:
            raise SessionStoreError(
                f"Unsupported database dialect for atomic upsert: {dialect}"
            ) from err
