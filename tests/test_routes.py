"""API tests using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

import api.routes as routes
from analysis.history import history_store
from config.settings import settings
from scraping.provider import DataProviderError


@pytest.fixture
def client():
    with TestClient(routes.app) as test_client:
        yield test_client


@pytest.fixture
def loaded(sample_dataset):
    history_store.replace(sample_dataset)
    yield sample_dataset
    history_store.clear()


@pytest.fixture
def simulator():
    yield routes.simulator
    routes.simulator.reset()
    routes.simulator.configure(
        batch_size=settings.sim_batch_size,
        tick_interval_ms=settings.sim_tick_interval_ms,
        limit_enabled=settings.sim_limit_enabled,
        limit_total=settings.sim_limit_total,
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.parametrize("method,path", [
    ("get", "/history/summary"),
    ("get", "/history/frequencies"),
    ("get", "/history/top"),
    ("get", "/history/combinations"),
])
def test_history_endpoints_require_loaded_history(client, method, path):
    history_store.clear()
    response = getattr(client, method)(path)
    assert response.status_code == 409


def test_history_summary(client, loaded):
    body = client.get("/history/summary").json()

    assert body["total_draws"] == 3
    assert body["last_contest"] == 3
    assert body["last_date"] is None
    assert body["excluded_contests"] == []


def test_history_frequencies(client, loaded):
    body = client.get("/history/frequencies").json()

    assert body["total_draws"] == 3
    assert body["total_numbers"] == 18
    first = body["frequencies"][0]
    assert first["number"] == 1
    assert first["label"] == "01"
    assert first["count"] == 3
    assert first["percent"] == pytest.approx(100 * 3 / 18)


def test_history_top_breaks_ties_by_lower_number(client, loaded):
    body = client.get("/history/top", params={"n": 4}).json()

    assert body["requested"] == 4
    assert [(e["number"], e["count"]) for e in body["numbers"]] == [(1, 3), (6, 3), (4, 2), (10, 2)]


def test_history_top_clamps_n(client, loaded):
    assert client.get("/history/top", params={"n": 500}).json()["requested"] == 60
    assert client.get("/history/top", params={"n": 0}).json()["requested"] == 1


def test_history_combinations(client, loaded):
    body = client.get("/history/combinations", params={"top_n": 4, "rows": 3}).json()

    assert body["pool"] == [1, 6, 4, 10]
    assert body["truncated"] is False
    pairs = body["combinations"]["2"]
    assert len(pairs) == 3
    assert pairs[0] == {"combo": [1, 6], "key": "01-06", "count": 3, "percent_of_total": 100.0}
    assert body["combinations"]["4"][0]["key"] == "01-04-06-10"


def test_history_combinations_truncates_large_pool(client, loaded):
    body = client.get("/history/combinations", params={"top_n": 20}).json()

    assert body["truncated"] is True
    assert body["pool_cap"] == settings.combo_pool_cap
    assert len(body["pool"]) == settings.combo_pool_cap


def test_query_finds_contest_without_date(client, loaded):
    response = client.post("/history/query", json={"numbers": [55, 1, 6]})

    assert response.status_code == 200
    body = response.json()
    assert body["numbers"] == [1, 6, 55]
    assert body["normalized_key"] == "01-06-55"
    assert body["occurred"] is True
    assert body["hits"] == [{"contest": 3, "date": "unknown"}]


def test_query_hits_sorted_by_contest(client, loaded):
    body = client.post("/history/query", json={"numbers": ["06", "01"]}).json()

    assert [h["contest"] for h in body["hits"]] == [1, 2, 3]
    assert body["hits"][0]["date"] == "11/03/1996"


def test_query_accepts_pasted_text(client, loaded):
    body = client.post("/history/query", json={"text": "01 - 06 ; 55"}).json()
    assert body["normalized_key"] == "01-06-55"


def test_query_without_hits(client, loaded):
    body = client.post("/history/query", json={"numbers": [59, 60]}).json()
    assert body["occurred"] is False
    assert body["hits"] == []


@pytest.mark.parametrize("payload", [
    {"numbers": [7]},
    {"numbers": [1, 2, 3, 4, 5, 6, 7]},
    {"numbers": [1, "abc"]},
    {},
])
def test_query_rejects_invalid_input(client, loaded, payload):
    response = client.post("/history/query", json=payload)
    assert response.status_code == 422


def test_refresh_replaces_history(client, sample_dataset, monkeypatch):
    class StubProvider:
        def fetch_dataset(self):
            return sample_dataset

    monkeypatch.setattr(routes, "provider", StubProvider())
    try:
        response = client.post("/history/refresh")
        assert response.status_code == 200
        assert response.json() == {"message": "History loaded", "total_draws": 3, "last_contest": 3}
        assert history_store.snapshot().dataset is sample_dataset
    finally:
        history_store.clear()


def test_refresh_reports_provider_failure(client, monkeypatch):
    class FailingProvider:
        def fetch_dataset(self):
            raise DataProviderError("feed offline")

    monkeypatch.setattr(routes, "provider", FailingProvider())
    response = client.post("/history/refresh")
    assert response.status_code == 502
    assert "feed offline" in response.json()["detail"]


def test_odds_table(client):
    rows = client.get("/odds").json()

    assert rows[0] == {"numbers": 6, "games": 1, "odds": 50063860}
    assert rows[1] == {"numbers": 7, "games": 7, "odds": 7151980}
    assert rows[-1] == {"numbers": 20, "games": 38760, "odds": 1292}


def test_simulation_run_to_limit_and_reset(client, simulator):
    config = client.put(
        "/simulation/config",
        json={"batch_size": 7, "limit_enabled": True, "limit_total": 7},
    ).json()
    assert config["batch_size"] == 7
    assert config["run_mode"] == "idle"
    assert client.get("/simulation/uniformity").status_code == 409

    started = client.post("/simulation/start").json()
    assert started["total_generated"] == 7
    assert started["frequency_sum"] == 42
    assert started["run_mode"] == "stopped_by_limit"
    assert started["progress"] == pytest.approx(1.0)
    assert len(started["last_draw"]) == 6

    freqs = client.get("/simulation/frequencies").json()
    assert freqs["total_draws"] == 7
    assert freqs["total_numbers"] == 42

    uniformity = client.get("/simulation/uniformity").json()
    assert uniformity["draws"] == 7
    assert uniformity["degrees_of_freedom"] == 59

    reset = client.post("/simulation/reset").json()
    assert reset["run_mode"] == "idle"
    assert reset["total_generated"] == 0
    assert reset["frequency_sum"] == 0
    assert reset["last_draw"] == []


def test_simulation_config_clamps(client, simulator):
    body = client.put(
        "/simulation/config",
        json={"batch_size": 10 ** 9, "tick_interval_ms": 0, "limit_total": -5},
    ).json()

    assert body["batch_size"] == 50000
    assert body["tick_interval_ms"] == 1
    assert body["limit_total"] == 1


def test_simulation_stop_while_idle(client, simulator):
    body = client.post("/simulation/stop").json()
    assert body["run_mode"] == "idle"
    assert body["running"] is False
