from __future__ import annotations

"""Fixed-interval scheduler for the monitoring jobs."""

import asyncio
from dataclasses import dataclass, field

from ordermonitor.logging import logger

from .jobs import MonitoringJobs


@dataclass
class MonitoringScheduler:
    """Run all monitoring jobs every ``interval`` seconds.

    Ticks are not skipped when a run is slow; the next run simply starts
    ``interval`` seconds after the previous one finished.
    """

    jobs: MonitoringJobs
    interval: float = 300.0
    _running: bool = field(default=False, init=False)

    @property
    def running(self) -> bool:
        return self._running

    async def run_forever(self) -> None:
        self._running = True
        logger.info("scheduler_started", interval=self.interval)
        while self._running:
            await self.tick()
            if not self._running:
                break
            await asyncio.sleep(self.interval)
        logger.info("scheduler_stopped")

    async def tick(self) -> int:
        results = await self.jobs.run_all()
        total = sum(len(alerts) for alerts in results.values())
        logger.info("scheduler_tick", alerts=total)
        return total

    def stop(self) -> None:
        self._running = False
