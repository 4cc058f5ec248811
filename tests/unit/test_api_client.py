"""
Tests for the query API client.

Responses come from an httpx.MockTransport; no server is started.
"""

import httpx
import pytest

from vr_benchmark.api.client import ProfileAPIClient
from vr_benchmark.models import RunDetail, RunSummary

BASE_URL = "http://profiler.test"

RUNS = [
    {"id": 1, "description": "second", "timestamp": 2000, "result": False},
    {"id": 0, "description": "first", "timestamp": 1000, "result": True},
]

DETAIL = {
    "description": "second",
    "timestamp": 2000,
    "result": False,
    "metrics": [
        {"name": "Total Frame Time", "value": 14.0, "lastValue": 10.0, "averageValue": 12.0},
    ],
}


def make_client(handler) -> ProfileAPIClient:
    return ProfileAPIClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


class TestListRuns:
    def test_success(self):
        client = make_client(lambda request: httpx.Response(200, json=RUNS))
        result = client.list_runs()
        assert result.success is True
        assert result.data == [RunSummary.model_validate(run) for run in RUNS]

    def test_requests_profiles_path(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=[])

        make_client(handler).list_runs()
        assert seen == ["/profiles"]

    def test_server_error(self):
        client = make_client(lambda request: httpx.Response(
            503, json={"detail": "Failed to read profile_runs", "type": "store_error"}
        ))
        result = client.list_runs()
        assert result.success is False
        assert result.error_type == "store_error"
        assert "503" in result.error

    def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = make_client(handler).list_runs()
        assert result.success is False
        assert "vrb serve" in result.error

    def test_unexpected_payload(self):
        client = make_client(lambda request: httpx.Response(200, json=[{"id": "x"}]))
        result = client.list_runs()
        assert result.success is False


class TestGetRun:
    def test_success(self):
        client = make_client(lambda request: httpx.Response(200, json=DETAIL))
        result = client.get_run(1)
        assert result.success is True
        assert isinstance(result.data, RunDetail)
        assert result.data.metrics[0].last_value == pytest.approx(10.0)
        assert result.data.metrics[0].average_value == pytest.approx(12.0)

    def test_not_found(self):
        client = make_client(lambda request: httpx.Response(
            404, json={"detail": "Run 9 not found", "type": "not_found"}
        ))
        result = client.get_run(9)
        assert result.success is False
        assert result.error_type == "not_found"
        assert "Run 9 not found" in result.error

    def test_non_json_error(self):
        client = make_client(lambda request: httpx.Response(500, text="Internal Server Error"))
        result = client.get_run(1)
        assert result.success is False
        assert result.error_type is None


class TestHealthCheck:
    def test_healthy(self):
        client = make_client(lambda request: httpx.Response(200, json={"status": "ok"}))
        assert client.health_check() is True

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        assert make_client(handler).health_check() is False
