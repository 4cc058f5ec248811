"""
Shared test fixtures.

FakeProfileStore keeps runs in memory and mirrors ProfileStore's
interface, so persistence and query code can be tested without Redis.
"""

import statistics

import pytest

from vr_benchmark.errors import AggregationError, StoreError
from vr_benchmark.models import RunSummary


class FakeProfileStore:
    """In-memory ProfileStore."""

    def __init__(self):
        self.next_id = 0
        self.runs: list[str] = []
        self.summaries: dict[int, dict[str, str]] = {}
        self.run_metrics: dict[int, dict[str, float]] = {}
        self.series: dict[str, list[tuple[int, float, str]]] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.closed = False

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    async def close(self) -> None:
        self.closed = True

    async def ping(self) -> bool:
        self._call("ping")
        return True

    async def allocate_run_id(self) -> int:
        self._call("allocate_run_id")
        run_id = self.next_id
        self.next_id += 1
        return run_id

    async def push_summary(self, summary: RunSummary) -> None:
        self._call("push_summary")
        self.runs.insert(0, summary.model_dump_json())

    async def list_summaries(self) -> list[RunSummary]:
        self._call("list_summaries")
        return [RunSummary.model_validate_json(entry) for entry in self.runs]

    async def write_summary_record(self, summary: RunSummary) -> None:
        self._call("write_summary_record")
        self.summaries[summary.id] = {
            "description": summary.description,
            "timestamp": str(summary.timestamp),
            "result": "true" if summary.result else "false",
        }

    async def read_summary_record(self, run_id: int) -> dict[str, str]:
        self._call("read_summary_record")
        return dict(self.summaries.get(run_id, {}))

    async def write_run_metrics(self, run_id: int, averages: dict[str, float]) -> None:
        self._call("write_run_metrics")
        self.run_metrics[run_id] = dict(averages)

    async def read_run_metrics(self, run_id: int) -> dict[str, float]:
        self._call("read_run_metrics")
        return dict(self.run_metrics.get(run_id, {}))

    async def add_samples(self, name, samples, run_id: int) -> None:
        self._call("add_samples")
        points = self.series.setdefault(name, [])
        for sample in samples:
            points.append((sample.timestamp, sample.value, str(run_id)))

    async def historical_average(self, name: str) -> float:
        self._call("historical_average")
        if f"historical_average:{name}" in self.fail_on:
            raise StoreError(f"history of {name} failed")
        if name not in self.series:
            raise StoreError(f"TSDB: the key '{name}' does not exist")
        points = self.series[name]
        if not points:
            raise AggregationError(f"No history recorded for '{name}'")
        return statistics.fmean(value for _, value, _ in points)


@pytest.fixture
def store():
    """Empty in-memory store."""
    return FakeProfileStore()
