# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from mint_scores.api.v1.dependencies import get_score_service
from mint_scores.db.base import Base
from mint_scores.main import app as fastapi_app
from mint_scores.services.anti_cheat import AntiCheatValidator
from mint_scores.services.scores import ScoreService
from mint_scores.services.session_store import RequestInfo, SessionStore
from mint_scores.services.tiers import TierClassifier

TEST_DB_URL = "sqlite://"

T0 = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
MOBILE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15"
PLAYER_IP = "192.168.1.1"
ADDRESS = "0x" + "ab" * 20
OTHER_ADDRESS = "0x" + "cd" * 20


def iso(value: datetime) -> str:
    """Render ``value`` the way a browser's ``Date.toISOString`` does."""
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture()
def store(session_factory: sessionmaker[Session], clock: FakeClock) -> SessionStore:
    return SessionStore(session_factory, clock=clock)


@pytest.fixture()
def service(store: SessionStore, clock: FakeClock) -> ScoreService:
    return ScoreService(
        store,
        validator=AntiCheatValidator(clock=clock),
        classifier=TierClassifier(),
        clock=clock,
    )


@pytest.fixture()
def desktop_info() -> RequestInfo:
    """Fingerprint of a desktop player starting a game at ``T0``."""
    return RequestInfo(ip_address=PLAYER_IP, user_agent=DESKTOP_UA, client_timestamp=iso(T0))


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, service: ScoreService) -> Iterator[TestClient]:
    app.dependency_overrides[get_score_service] = lambda: service
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_score_service, None)
