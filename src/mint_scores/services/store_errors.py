"""Tagged error kinds for the session store.

The store adapter translates driver exceptions into this closed set so that
callers branch on `kind` rather than on free-text driver messages.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


class StoreErrorKind(Enum):
    """Closed set of failure categories surfaced by the session store."""

    STORE_UNAVAILABLE = "store_unavailable"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


class SessionStoreError(RuntimeError):
    """Base exception raised for session store failures.

    Instances created directly carry `StoreErrorKind.UNKNOWN` unless a kind is
    given explicitly.
    """

    kind: StoreErrorKind = StoreErrorKind.UNKNOWN

    def __init__(self, message: str, *, kind: StoreErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class SessionExistsError(SessionStoreError):
    """Raised when a terminal (already scored) session blocks a write."""

    kind = StoreErrorKind.CONFLICT

    def __init__(self, address: str) -> None:
        super().__init__(f"Address {address} already has a completed game session")
        self.address = address


class SessionNotFoundError(SessionStoreError):
    """Raised when an update targets an address with no session."""

    kind = StoreErrorKind.NOT_FOUND

    def __init__(self, address: str) -> None:
        super().__init__(f"No game session found for address {address}")
        self.address = address


class StoreUnavailableError(SessionStoreError):
    """Raised when the backing database cannot be reached or timed out."""

    kind = StoreErrorKind.STORE_UNAVAILABLE


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy exceptions as `SessionStoreError` subclasses.

    Args:
        operation: Human-readable name of the store operation, used in messages.

    Raises:
        StoreUnavailableError: On connection, interface or pool timeout errors.
        SessionStoreError: With kind CONFLICT for integrity violations and
            kind UNKNOWN for anything else raised by the driver.
    """
    try:
        yield
    except SessionStoreError:
        raise
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        logger.warning("Store unavailable during %s: %s", operation, exc)
        raise StoreUnavailableError(f"Failed to {operation}: store unavailable") from exc
    except IntegrityError as exc:
        logger.warning("Integrity conflict during %s: %s", operation, exc)
        raise SessionStoreError(
            f"Failed to {operation}: conflicting write",
            kind=StoreErrorKind.CONFLICT,
        ) from exc
    except SQLAlchemyError as exc:
        logger.warning("Unexpected store error during %s: %s", operation, exc)
        raise SessionStoreError(f"Failed to {operation}") from exc
