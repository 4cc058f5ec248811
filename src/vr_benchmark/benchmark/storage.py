"""
Profile Run Storage.

Persists profiling runs in Redis (with the RedisTimeSeries module) and
reads them back for the query API.

IMPORTANT: Runs are append-only. There is no update or delete.

Layout:
    profile_runs                  - list of JSON run summaries, newest first
    profile_runs:next_id          - counter handing out run ids
    profile_runs:{id}:summary     - hash: description, timestamp, result
    profile_runs:{id}:metrics     - hash: metric name -> run average
    <metric name>                 - time series shared by all runs,
                                    labelled profile_run={id}
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError

from vr_benchmark.analysis.metrics import MetricSeries, Sample, compute_averages
from vr_benchmark.config.settings import settings
from vr_benchmark.errors import AggregationError, NotFoundError, StoreError
from vr_benchmark.models import RunSummary

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

RUNS_KEY = "profile_runs"
RUN_COUNTER_KEY = f"{RUNS_KEY}:next_id"
RUN_LABEL = "profile_run"


def summary_key(run_id: int) -> str:
    return f"{RUNS_KEY}:{run_id}:summary"


def metrics_key(run_id: int) -> str:
    return f"{RUNS_KEY}:{run_id}:metrics"


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Re-raise Redis failures as StoreError."""
    try:
        yield
    except RedisError as e:
        raise StoreError(f"Failed to {action}: {e}") from e


class ProfileStore:
    """
    Redis-backed storage for profiling runs.

    Every method is a single logical operation; failures surface as
    StoreError. Concurrent calls each take their own pooled connection.
    """

    def __init__(self, redis: Redis[Any]):
        self._redis = redis

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "ProfileStore":
        """Create a store for a Redis URL (defaults to settings)."""
        import redis.asyncio as aioredis

        return cls(aioredis.from_url(url or settings.REDIS_URL, decode_responses=True))

    async def close(self) -> None:
        await self._redis.aclose()

    async def ping(self) -> bool:
        with _store_errors("reach Redis"):
            return bool(await self._redis.ping())

    # --- run index -------------------------------------------------------

    async def allocate_run_id(self) -> int:
        """Hand out the next run id (0, 1, 2, ...)."""
        with _store_errors("allocate run id"):
            return int(await self._redis.incr(RUN_COUNTER_KEY)) - 1

    async def push_summary(self, summary: RunSummary) -> None:
        """Put a run at the head of the run list."""
        with _store_errors(f"add run {summary.id} to {RUNS_KEY}"):
            await self._redis.lpush(RUNS_KEY, summary.model_dump_json())

    async def list_summaries(self) -> list[RunSummary]:
        """All runs, newest first."""
        with _store_errors(f"read {RUNS_KEY}"):
            entries = await self._redis.lrange(RUNS_KEY, 0, -1)
        try:
            return [RunSummary.model_validate_json(entry) for entry in entries]
        except ValidationError as e:
            raise StoreError(f"Corrupt entry in {RUNS_KEY}: {e}") from e

    # --- per-run records -------------------------------------------------

    async def write_summary_record(self, summary: RunSummary) -> None:
        with _store_errors(f"write {summary_key(summary.id)}"):
            await self._redis.hset(summary_key(summary.id), mapping={
                "description": summary.description,
                "timestamp": summary.timestamp,
                "result": "true" if summary.result else "false",
            })

    async def read_summary_record(self, run_id: int) -> dict[str, str]:
        """Raw summary fields; empty if the run does not exist."""
        with _store_errors(f"read {summary_key(run_id)}"):
            return await self._redis.hgetall(summary_key(run_id))

    async def write_run_metrics(self, run_id: int, averages: dict[str, float]) -> None:
        if not averages:
            return
        with _store_errors(f"write {metrics_key(run_id)}"):
            await self._redis.hset(metrics_key(run_id), mapping=averages)

    async def read_run_metrics(self, run_id: int) -> dict[str, float]:
        """Stored per-run averages; empty if the run does not exist."""
        with _store_errors(f"read {metrics_key(run_id)}"):
            raw = await self._redis.hgetall(metrics_key(run_id))
        try:
            return {name: float(value) for name, value in raw.items()}
        except ValueError as e:
            raise StoreError(f"Corrupt value in {metrics_key(run_id)}: {e}") from e

    # --- time series -----------------------------------------------------

    async def add_samples(self, name: str, samples: list[Sample], run_id: int) -> None:
        """
        Append a run's samples to the metric's global time series.

        The first sample creates the series (with its label and duplicate
        policy) if needed; the rest go out in a single TS.MADD.
        """
        if not samples:
            return

        ts = self._redis.ts()
        first, rest = samples[0], samples[1:]
        with _store_errors(f"add {name} sample at {first.timestamp}"):
            await ts.add(
                name,
                first.timestamp,
                first.value,
                labels={RUN_LABEL: str(run_id)},
                duplicate_policy="last",
            )
            if not rest:
                return
            replies = await ts.madd([(name, sample.timestamp, sample.value) for sample in rest])

        # MADD reports per-sample failures in its reply instead of raising
        failed = [reply for reply in replies if isinstance(reply, Exception)]
        if failed:
            raise StoreError(f"Failed to add {len(failed)} {name} samples: {failed[0]}")

    async def historical_average(self, name: str) -> float:
        """
        Mean of every sample ever stored for a metric.

        One bucket is anchored at the series' first sample and sized to
        reach its last, so the aggregation always returns exactly one value.
        """
        ts = self._redis.ts()
        with _store_errors(f"read info of {name}"):
            info = await ts.info(name)
        if not info.total_samples:
            raise AggregationError(f"No history recorded for '{name}'")

        first = int(info.first_timestamp)
        last = int(info.last_timestamp)
        with _store_errors(f"query history of {name}"):
            buckets = await ts.revrange(
                name,
                first,
                last,
                aggregation_type="avg",
                bucket_size_msec=last - first + 1,
                align="start",
            )
        if len(buckets) != 1:
            raise AggregationError(f"Expected one history bucket for '{name}', got {len(buckets)}")
        _, value = buckets[0]
        return float(value)


class RunSummaryIndex:
    """Ordered index of run summaries."""

    def __init__(self, store: ProfileStore):
        self.store = store

    async def list_summaries(self) -> list[RunSummary]:
        """All runs in stored order (most recent first)."""
        return await self.store.list_summaries()

    async def get_summary(self, run_id: int) -> RunSummary:
        """
        Look up one run.

        Raises:
            NotFoundError: No run with this id was ever stored.
        """
        record = await self.store.read_summary_record(run_id)
        if not record:
            raise NotFoundError(f"Run {run_id} not found")

        try:
            return RunSummary(
                id=run_id,
                description=record["description"],
                timestamp=int(record["timestamp"]),
                result=record["result"] == "true",
            )
        except (KeyError, ValueError) as e:
            raise StoreError(f"Corrupt summary for run {run_id}: {e!r}") from e


class RunPersister:
    """Writes a completed run. This is the only write path."""

    def __init__(self, store: ProfileStore):
        self.store = store

    async def persist(
        self,
        metrics: MetricSeries,
        description: str,
        timestamp: int,
        result: bool,
    ) -> RunSummary:
        """
        Save a run.

        Args:
            metrics: Every series captured for the run.
            description: What changed for this run.
            timestamp: Run start (epoch ms).
            result: Whether the run met the frame time target.

        Returns:
            The stored summary, including the assigned id.

        Raises:
            EmptySeriesError: A series has no samples. Nothing is written.
            StoreError: A write failed. Earlier writes are not rolled back.
        """
        averages = compute_averages(metrics)

        run_id = await self.store.allocate_run_id()
        summary = RunSummary(id=run_id, description=description, timestamp=timestamp, result=result)
        logger.info("Saving run %d (%d metrics)", run_id, len(metrics))

        await self.store.push_summary(summary)
        await self.store.write_summary_record(summary)
        await self.store.write_run_metrics(run_id, averages)

        for name, samples in metrics.items():
            logger.debug("Saving %d samples of %s", len(samples), name)
            await self.store.add_samples(name, samples, run_id)

        return summary
