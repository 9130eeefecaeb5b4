"""
Polling loop that keeps the dashboard metrics fresh.

Metrics are split into a fast tier and a slow tier, each refreshed by its own
task. Tier tasks never touch the samples directly: they push finished batches
onto a queue, and a single consumer task applies them. A metric whose fetch
failed is left out of its batch, so the last good value stays on screen.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from statboard.core.config import DEFAULT_SUBS_BASELINE
from statboard.core.fetchers import StatFetcher
from statboard.core.metrics import calculate_change, format_number, get_today_subscription_count
from statboard.models import DashboardMetric, DashboardSnapshot, Metric, MetricSample

logger = logging.getLogger(__name__)

FAST_TIER = (
    Metric.SUBSCRIPTIONS,
    Metric.PLAYSTORE_DOWNLOADS,
    Metric.APPSTORE_DOWNLOADS,
    Metric.REVENUE,
    Metric.USERS_THIS_MONTH,
)
SLOW_TIER = (
    Metric.WAITLIST,
    Metric.SPIN_WHEEL,
)
ALL_METRICS = FAST_TIER + SLOW_TIER


class StatsPoller:
    """Owns the in-memory current/previous sample for every metric."""

    def __init__(
        self,
        fetcher: StatFetcher,
        fast_interval: float = 30.0,
        slow_interval: float = 60.0,
        clock_interval: float = 1.0,
        subs_baseline: int = DEFAULT_SUBS_BASELINE,
    ):
        self.fetcher = fetcher
        self.fast_interval = fast_interval
        self.slow_interval = slow_interval
        self.clock_interval = clock_interval
        self.subs_baseline = subs_baseline
        self.samples: Dict[Metric, MetricSample] = {}
        self.clock: Optional[datetime] = None
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def fetch_metrics(self, metrics: Iterable[Metric]) -> Dict[Metric, int]:
        """Fetch metrics concurrently; failed ones are omitted."""
        metrics = list(metrics)
        values = await asyncio.gather(*(self.fetcher.try_fetch(m) for m in metrics))
        return {m: v for m, v in zip(metrics, values) if v is not None}

    def apply(self, values: Dict[Metric, int]) -> None:
        """Shift current into previous and store the new values."""
        for metric, value in values.items():
            sample = self.samples.get(metric)
            previous = sample.current if sample else value
            self.samples[metric] = MetricSample(current=value, previous=previous)

    async def load_initial(self) -> None:
        """Fetch everything once, seeding previous with the current value."""
        values = await self.fetch_metrics(ALL_METRICS)
        for metric, value in values.items():
            self.samples[metric] = MetricSample(current=value, previous=value)
        logger.info("Initial load fetched %d of %d metrics", len(values), len(ALL_METRICS))

    async def refresh(self, metrics: Iterable[Metric]) -> None:
        """One-off fetch and apply, outside the timers."""
        self.apply(await self.fetch_metrics(metrics))

    async def _run_tier(self, metrics: Iterable[Metric], interval: float, initial: asyncio.Task) -> None:
        metrics = tuple(metrics)
        # Tier batches must not land before the initial load seeds the samples
        await asyncio.wait([initial])
        while True:
            await asyncio.sleep(interval)
            batch = await self.fetch_metrics(metrics)
            await self._queue.put(batch)

    async def _consume(self) -> None:
        while True:
            batch = await self._queue.get()
            self.apply(batch)
            self._queue.task_done()

    async def _tick_clock(self) -> None:
        while True:
            self.clock = datetime.now()
            await asyncio.sleep(self.clock_interval)

    async def start(self) -> None:
        """Start the initial load and the tier, consumer and clock tasks."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self.clock = datetime.now()
        initial = asyncio.create_task(self.load_initial())
        self._tasks = [
            initial,
            asyncio.create_task(self._consume()),
            asyncio.create_task(self._run_tier(FAST_TIER, self.fast_interval, initial)),
            asyncio.create_task(self._run_tier(SLOW_TIER, self.slow_interval, initial)),
            asyncio.create_task(self._tick_clock()),
        ]
        logger.info(
            "Polling started (fast every %ss, slow every %ss)",
            self.fast_interval, self.slow_interval,
        )

    async def stop(self) -> None:
        """Cancel every timer task."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Polling stopped")

    def snapshot(self) -> DashboardSnapshot:
        """Current samples with change and display formatting."""
        metrics = {
            metric.value: DashboardMetric(
                current=sample.current,
                previous=sample.previous,
                change=calculate_change(sample.current, sample.previous),
                formatted=format_number(sample.current),
            )
            for metric, sample in self.samples.items()
        }

        subscriptions = self.samples.get(Metric.SUBSCRIPTIONS)
        subscriptions_today = 0
        if subscriptions is not None:
            subscriptions_today = get_today_subscription_count(subscriptions.current, self.subs_baseline)

        return DashboardSnapshot(
            time=self.clock.strftime("%H:%M:%S") if self.clock else None,
            metrics=metrics,
            subscriptions_today=subscriptions_today,
        )
