"""
Run comparison.

Builds the view shown for a run: each metric's value for the run, for the
run before it, and averaged over every run ever recorded.
"""

import asyncio
import logging

from vr_benchmark.benchmark.storage import ProfileStore, RunSummaryIndex
from vr_benchmark.models import MetricSummary, RunDetail

logger = logging.getLogger(__name__)


class AverageAggregator:
    """All-time averages, one concurrent history query per metric."""

    def __init__(self, store: ProfileStore):
        self.store = store

    async def averages(self, names: list[str]) -> dict[str, float]:
        """
        Average each metric over its entire history.

        All-or-nothing: if any metric's query fails, the whole call fails.
        """
        names = list(names)
        values = await asyncio.gather(*(self.store.historical_average(name) for name in names))
        return dict(zip(names, values))


class RunAssembler:
    """Composes the RunDetail for a single run."""

    def __init__(self, store: ProfileStore):
        self.store = store
        self.index = RunSummaryIndex(store)
        self.aggregator = AverageAggregator(store)

    async def assemble(self, run_id: int) -> RunDetail:
        """
        Build the comparison view of a run.

        The first run has no predecessor; its last values are all 0.

        Raises:
            NotFoundError: The run does not exist.
        """
        summary = await self.index.get_summary(run_id)
        run_metrics = await self.store.read_run_metrics(run_id)
        average_metrics = await self.aggregator.averages(list(run_metrics))

        last_metrics: dict[str, float] = {}
        if run_id > 0:
            last_metrics = await self.store.read_run_metrics(run_id - 1)

        logger.debug("Assembled run %d with %d metrics", run_id, len(run_metrics))

        return RunDetail(
            description=summary.description,
            timestamp=summary.timestamp,
            result=summary.result,
            metrics=[
                MetricSummary(
                    name=name,
                    value=value,
                    last_value=last_metrics.get(name, 0.0),
                    average_value=average_metrics[name],
                )
                for name, value in sorted(run_metrics.items())
            ],
        )
