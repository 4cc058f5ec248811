"""
Tests for the query API.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from vr_benchmark.analysis.metrics import CPU_TIME, GPU_TIME, TOTAL_FRAME_TIME, Sample
from vr_benchmark.benchmark.storage import RunPersister
from vr_benchmark.server.app import create_app

START = 1668142546000


def persist(store, total, gpu, description):
    metrics = {
        TOTAL_FRAME_TIME: [Sample(v, START + i) for i, v in enumerate(total)],
        GPU_TIME: [Sample(v, START + i) for i, v in enumerate(gpu)],
        CPU_TIME: [Sample(t - g, START + i) for i, (t, g) in enumerate(zip(total, gpu))],
    }
    asyncio.run(RunPersister(store).persist(metrics, description, START, sum(total) / len(total) <= 13.0))


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client


class TestProfilesEndpoint:
    """Tests for GET /profiles."""

    def test_empty(self, client):
        response = client.get("/profiles")
        assert response.status_code == 200
        assert response.json() == []

    def test_most_recent_first(self, client, store):
        persist(store, [10.0], [4.0], "first")
        persist(store, [14.0], [4.0], "second")
        response = client.get("/profiles")
        assert response.status_code == 200
        assert response.json() == [
            {"id": 1, "description": "second", "timestamp": START, "result": False},
            {"id": 0, "description": "first", "timestamp": START, "result": True},
        ]

    def test_cors_any_origin(self, client):
        response = client.get("/profiles", headers={"Origin": "http://dashboard.local"})
        assert response.headers["access-control-allow-origin"] == "*"

    def test_store_failure(self, client, store):
        """Store errors become a typed 503, and the server keeps serving."""
        store.fail_on.add("list_summaries")
        response = client.get("/profiles")
        assert response.status_code == 503
        assert response.json()["type"] == "store_error"

        store.fail_on.clear()
        assert client.get("/profiles").status_code == 200


class TestProfileEndpoint:
    """Tests for GET /profiles/{id}."""

    def test_detail_camel_case(self, client, store):
        persist(store, [10.0, 12.0], [4.0, 5.0], "baseline")
        response = client.get("/profiles/0")
        assert response.status_code == 200

        data = response.json()
        assert data["description"] == "baseline"
        assert data["timestamp"] == START
        assert data["result"] is True

        total = next(m for m in data["metrics"] if m["name"] == TOTAL_FRAME_TIME)
        assert total["value"] == pytest.approx(11.0)
        assert total["lastValue"] == 0
        assert total["averageValue"] == pytest.approx(11.0)

    def test_previous_run(self, client, store):
        persist(store, [10.0], [4.0], "first")
        persist(store, [12.0], [4.0], "second")
        data = client.get("/profiles/1").json()
        total = next(m for m in data["metrics"] if m["name"] == TOTAL_FRAME_TIME)
        assert total["lastValue"] == pytest.approx(10.0)
        assert total["averageValue"] == pytest.approx(11.0)

    def test_missing_run(self, client):
        response = client.get("/profiles/42")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_aggregation_failure(self, client, store):
        persist(store, [10.0], [4.0], "first")
        store.series[GPU_TIME] = []
        response = client.get("/profiles/0")
        assert response.status_code == 502
        assert response.json()["type"] == "aggregation_error"

    def test_invalid_id(self, client):
        assert client.get("/profiles/abc").status_code == 422


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
