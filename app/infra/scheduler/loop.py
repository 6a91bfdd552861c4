# app/infra/scheduler/loop.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

JobFn = Callable[[], Awaitable[object]]


@dataclass
class SchedulerConfig:
    poll_seconds: float = 1.0


@dataclass
class IntervalJob:
    name: str
    interval_seconds: float
    fn: JobFn
    last_run: Optional[float] = None
    run_count: int = 0
    last_error: Optional[str] = None

    def is_due(self, now: float) -> bool:
        return self.last_run is None or now - self.last_run >= self.interval_seconds


class IntervalScheduler:
    """
    Timer ticks feeding plain coroutines (status sweep, remote refresh).

    Every job runs on the first tick, then once per interval. `monotonic`
    and `sleep` are injectable so tests can drive time by hand.
    """

    def __init__(
        self,
        cfg: SchedulerConfig = SchedulerConfig(),
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._cfg = cfg
        self._monotonic = monotonic
        self._sleep = sleep
        self._jobs: Dict[str, IntervalJob] = {}
        self._stop = asyncio.Event()

    def register(self, name: str, interval_seconds: float, fn: JobFn) -> IntervalJob:
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive for job {name}")
        job = IntervalJob(name=name, interval_seconds=interval_seconds, fn=fn)
        self._jobs[name] = job
        return job

    def job(self, name: str) -> IntervalJob:
        return self._jobs[name]

    def stop(self) -> None:
        self._stop.set()

    async def run_forever(self) -> None:
        while not self._stop.is_set():
            await self.tick()
            await self._sleep(self._cfg.poll_seconds)

    async def tick(self) -> List[str]:
        """Run every due job; returns the names that ran."""
        now = self._monotonic()
        ran: List[str] = []
        for job in list(self._jobs.values()):
            if not job.is_due(now):
                continue
            job.last_run = now
            job.run_count += 1
            ran.append(job.name)
            try:
                await job.fn()
                job.last_error = None
            except Exception as e:
                # a failing job never stops the loop
                job.last_error = str(e)
                logger.error(f"Scheduled job failed: name={job.name}, error={e}", exc_info=True)
        return ran
