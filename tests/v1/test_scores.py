"""Tests for the score endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.testclient import TestClient

from mint_scores.services.session_store import SessionStore
from tests.conftest import ADDRESS, DESKTOP_UA, OTHER_ADDRESS, T0, FakeClock, iso

HEADERS = {"user-agent": DESKTOP_UA, "x-forwarded-for": "192.168.1.1, 10.0.0.1"}


def _start(client: TestClient, address: str = ADDRESS, **overrides: Any):
    body = {"address": address, "clientTimestamp": iso(T0), **overrides}
    return client.post("/api/v1/scores/start", json=body, headers=HEADERS)


def _end(client: TestClient, clock: FakeClock, score: Any, address: str = ADDRESS, minutes: float = 5):
    end = clock.advance(minutes=minutes)
    return client.post(
        "/api/v1/scores/end",
        json={"address": address, "score": score, "clientTimestamp": iso(end)},
        headers=HEADERS,
    )


def _assert_error(response, status_code: int, code: str) -> dict[str, Any]:
    assert response.status_code == status_code
    body = response.json()
    assert body["code"] == code
    assert set(body) == {"error", "code", "timestamp"}
    return body


def test_start_game(client: TestClient) -> None:
    response = _start(client)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "message": "Game session started successfully",
        "serverTimestamp": "2024-01-01T10:00:00.000Z",
    }


def test_start_game_requires_address(client: TestClient) -> None:
    response = client.post("/api/v1/scores/start", json={"clientTimestamp": iso(T0)})
    _assert_error(response, status.HTTP_400_BAD_REQUEST, "MISSING_ADDRESS")


def test_start_game_rejects_malformed_address(client: TestClient) -> None:
    response = _start(client, address="0x1234")
    _assert_error(response, status.HTTP_400_BAD_REQUEST, "INVALID_ADDRESS_FORMAT")


def test_start_game_requires_client_timestamp(client: TestClient) -> None:
    response = client.post("/api/v1/scores/start", json={"address": ADDRESS})
    _assert_error(response, status.HTTP_400_BAD_REQUEST, "MISSING_CLIENT_TIMESTAMP")


def test_full_game_flow(client: TestClient, clock: FakeClock) -> None:
    assert _start(client, address=ADDRESS.upper().replace("0X", "0x")).status_code == 200

    response = _end(client, clock, "300")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "validation": "VALID",
        "priceTier": 0,
        "serverTimestamp": "2024-01-01T10:05:00.000Z",
    }

    response = client.get(f"/api/v1/scores/{ADDRESS}")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["address"] == ADDRESS
    assert body["score"] == 300
    assert body["validation"] == "VALID"
    assert body["priceTier"] == 0

    response = client.get(f"/api/v1/scores/{ADDRESS}/tier")
    assert response.json() == {"address": ADDRESS, "priceTier": 0}


def test_anti_cheat_rejection(client: TestClient, clock: FakeClock) -> None:
    _start(client)
    response = _end(client, clock, 700)
    body = _assert_error(response, status.HTTP_400_BAD_REQUEST, "ANTI_CHEAT_REJECTION")
    assert body["error"] == "score too high"

    body = client.get(f"/api/v1/scores/{ADDRESS}").json()
    assert body["score"] == 700
    assert body["validation"] == "INVALID"
    assert body["priceTier"] == 3


def test_end_game_requires_address_and_score(client: TestClient) -> None:
    response = client.post(
        "/api/v1/scores/end", json={"address": ADDRESS, "clientTimestamp": iso(T0)}
    )
    _assert_error(response, status.HTTP_400_BAD_REQUEST, "MISSING_REQUIRED_FIELDS")

    response = client.post("/api/v1/scores/end", json={"score": 10, "clientTimestamp": iso(T0)})
    _assert_error(response, status.HTTP_400_BAD_REQUEST, "MISSING_REQUIRED_FIELDS")


def test_end_game_requires_client_timestamp(client: TestClient) -> None:
    for body in (
        {"address": ADDRESS, "score": "300"},
        {"address": ADDRESS, "score": "300", "clientTimestamp": ""},
    ):
        response = client.post("/api/v1/scores/end", json=body)
        error = _assert_error(response, status.HTTP_400_BAD_REQUEST, "MISSING_CLIENT_TIMESTAMP")
        assert error["error"] == "Client timestamp is required"


def test_end_game_rejects_out_of_range_scores(client: TestClient, clock: FakeClock) -> None:
    _start(client)
    for score in (-1, 10_001, "abc", 12.5, True):
        response = _end(client, clock, score, minutes=0)
        _assert_error(response, status.HTTP_400_BAD_REQUEST, "INVALID_SCORE_RANGE")


def test_end_game_without_session(client: TestClient, clock: FakeClock) -> None:
    body = _assert_error(
        _end(client, clock, 100), status.HTTP_400_BAD_REQUEST, "SCORE_PROCESSING_ERROR"
    )
    assert body["error"] == "No game session found for this address"


def test_only_one_attempt_per_address(client: TestClient, clock: FakeClock) -> None:
    _start(client)
    _end(client, clock, 300)

    _assert_error(_start(client), status.HTTP_400_BAD_REQUEST, "SESSION_CREATION_ERROR")
    _assert_error(_end(client, clock, 300), status.HTTP_400_BAD_REQUEST, "SCORE_PROCESSING_ERROR")


def test_score_of_running_game_has_no_verdict(client: TestClient) -> None:
    _start(client)
    body = client.get(f"/api/v1/scores/{ADDRESS}").json()
    assert body["score"] is None
    assert body["validation"] is None
    assert body["priceTier"] is None


def test_score_lookup_for_unknown_address(client: TestClient) -> None:
    response = client.get(f"/api/v1/scores/{OTHER_ADDRESS}")
    _assert_error(response, status.HTTP_404_NOT_FOUND, "SCORE_NOT_FOUND")


def test_score_lookup_validates_pending_score(
    client: TestClient, store: SessionStore, clock: FakeClock
) -> None:
    _start(client)
    end = clock.advance(minutes=5)
    store.update_session(ADDRESS, 120, end, iso(end))

    body = client.get(f"/api/v1/scores/{ADDRESS}").json()
    assert body["validation"] == "VALID"
    assert body["priceTier"] == 1
    assert store.get_session(ADDRESS).validation_result == "VALID"


def test_tier_of_unknown_address_is_lowest(client: TestClient) -> None:
    response = client.get(f"/api/v1/scores/{OTHER_ADDRESS}/tier")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["priceTier"] == 3


def test_validate_endpoint(client: TestClient, clock: FakeClock) -> None:
    _start(client)
    _end(client, clock, 60)

    response = client.post("/api/v1/scores/validate", json={"address": ADDRESS})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "message": f"Score validation completed for address {ADDRESS}",
        "validationResult": "VALID",
        "rejectionReason": None,
        "priceTier": 2,
    }


def test_validate_endpoint_without_score(client: TestClient) -> None:
    response = client.post("/api/v1/scores/validate", json={"address": ADDRESS})
    body = _assert_error(response, status.HTTP_400_BAD_REQUEST, "VALIDATION_FAILED")
    assert body["error"] == "No score found for this address"


def test_session_stats(client: TestClient, clock: FakeClock) -> None:
    _start(client)
    _start(client, address=OTHER_ADDRESS)
    _end(client, clock, 300)
    _end(client, clock, 5000, address=OTHER_ADDRESS, minutes=0)

    response = client.get("/api/v1/scores/stats")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"total": 2, "completed": 1, "invalid": 1}


def test_leaderboard(client: TestClient, clock: FakeClock) -> None:
    _start(client)
    _start(client, address=OTHER_ADDRESS)
    _end(client, clock, 100)
    _end(client, clock, 500, address=OTHER_ADDRESS, minutes=0)

    response = client.get("/api/v1/scores")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert [entry["address"] for entry in body["data"]] == [OTHER_ADDRESS, ADDRESS]
    assert body["data"][0]["validationResult"] == "VALID"
    assert body["stats"] == {
        "totalScores": 2,
        "averageScore": 300.0,
        "highestScore": 500,
        "lowestScore": 100,
    }
    assert body["note"].startswith("Use POST /scores/start")


def test_direct_submission_is_gone(client: TestClient) -> None:
    response = client.post("/api/v1/scores", json={"address": ADDRESS, "score": 100})
    _assert_error(response, status.HTTP_410_GONE, "DEPRECATED_ENDPOINT")
