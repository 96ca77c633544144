from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator

import pytest
from fastapi.testclient import TestClient

from solarclock.config import CACHE_SIZE_ENV_VAR, CONFIG_ENV_VAR


@contextmanager
def _api_environment() -> Iterator[None]:
    with pytest.MonkeyPatch.context() as mp:
        mp.delenv(CONFIG_ENV_VAR, raising=False)
        mp.setenv(CACHE_SIZE_ENV_VAR, "16")
        yield


@pytest.fixture(scope="module")
def api_client() -> Iterable[TestClient]:
    with _api_environment():
        from solar_clock_api import app

        with TestClient(app) as client:
            yield client


def test_api_environment_is_restored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CACHE_SIZE_ENV_VAR, "5")
    monkeypatch.setenv(CONFIG_ENV_VAR, "/tmp/clock.json")
    with _api_environment():
        assert os.environ[CACHE_SIZE_ENV_VAR] == "16"
        assert CONFIG_ENV_VAR not in os.environ
    assert os.environ[CACHE_SIZE_ENV_VAR] == "5"
    assert os.environ[CONFIG_ENV_VAR] == "/tmp/clock.json"


def test_health_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["reference_offset"] == "+01:00"
    assert payload["cache"]["capacity"] == 16


def test_events_endpoint(api_client: TestClient) -> None:
    response = api_client.get(
        "/events",
        params={"lat": 52.52, "lon": 13.405, "date": "2024-06-21", "offset_hours": 1},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["sunrise_utc"].startswith("2024-06-21T02:4")
    assert payload["sunrise_utc"].endswith("Z")
    assert payload["sunrise_local"].endswith("+01:00")
    assert payload["noon_utc"] < payload["sunset_utc"]


def test_events_polar_day(api_client: TestClient) -> None:
    response = api_client.get(
        "/events",
        params={"lat": 78.2232, "lon": 15.6469, "date": "2025-06-21", "twilight": "civil"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "polar_day"
    assert payload["sunrise_utc"] is None
    assert payload["sunset_utc"] is None
    assert payload["noon_utc"] is not None


def test_validation_error(api_client: TestClient) -> None:
    response = api_client.get(
        "/events",
        params={
            "lat": 95,  # invalid latitude
            "lon": 0,
            "date": "2025-10-21",
        },
    )
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["ok"] is False


def test_convert_endpoint(api_client: TestClient) -> None:
    response = api_client.get(
        "/convert",
        params={"at": "2024-06-21T14:00:00+02:00", "lat": 52.52, "lon": 13.405},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["input_utc"] == "2024-06-21T12:00:00Z"
    assert payload["reference_offset"] == "+01:00"
    assert payload["formatted"].endswith("+0100")
    assert payload["delta_seconds"] > 0
    assert payload["extrapolated"] is False
    solar = datetime.fromisoformat(payload["solar_utc"].replace("Z", "+00:00"))
    assert solar > datetime.fromisoformat("2024-06-21T12:00:00+00:00")


def test_convert_uses_configured_coordinate(api_client: TestClient) -> None:
    response = api_client.get("/convert", params={"at": "2026-02-03T13:15:43+01:00"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["latitude"] == pytest.approx(38.34599467937726)
    assert payload["formatted"].startswith("2026-02-03 14:00:0") or payload[
        "formatted"
    ].startswith("2026-02-03 13:59:5")


def test_convert_dst_invariance(api_client: TestClient) -> None:
    first = api_client.get("/convert", params={"at": "2026-03-29T02:00:00+01:00"}).json()
    second = api_client.get("/convert", params={"at": "2026-03-29T03:00:00+02:00"}).json()
    assert first == second


def test_convert_rejects_naive_datetime(api_client: TestClient) -> None:
    response = api_client.get("/convert", params={"at": "2024-06-21T12:00:00"})
    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_convert_requires_both_coordinates(api_client: TestClient) -> None:
    response = api_client.get("/convert", params={"at": "2024-06-21T12:00:00Z", "lat": 10})
    assert response.status_code == 400
    assert response.json()["code"] == "http_400"


def test_convert_batch(api_client: TestClient) -> None:
    instants = [
        "2024-06-20T12:00:00Z",
        "2024-06-21T12:00:00Z",
        "2024-06-20T18:00:00Z",
    ]
    response = api_client.post(
        "/convert/batch", json={"instants": instants, "lat": 52.52, "lon": 13.405}
    )
    assert response.status_code == 200
    results = response.json()["results"]
    assert [item["input_utc"] for item in results] == [value for value in instants]
    single = api_client.get(
        "/convert", params={"at": instants[1], "lat": 52.52, "lon": 13.405}
    ).json()
    assert results[1]["solar_utc"] == single["solar_utc"]


def test_convert_batch_rejects_empty(api_client: TestClient) -> None:
    response = api_client.post("/convert/batch", json={"instants": []})
    assert response.status_code == 422
