"""
IntervalScheduler driven by a hand-moved monotonic clock.
"""
from __future__ import annotations

import asyncio

import pytest

from app.infra.scheduler.loop import IntervalScheduler, SchedulerConfig


class ManualTime:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def test_every_job_runs_on_first_tick_then_per_interval():
    async def run():
        clock = ManualTime()
        calls = []

        async def sweep():
            calls.append("sweep")

        async def refresh():
            calls.append("refresh")

        scheduler = IntervalScheduler(monotonic=clock)
        scheduler.register("sweep", 60, sweep)
        scheduler.register("refresh", 30, refresh)

        assert await scheduler.tick() == ["sweep", "refresh"]
        clock.t = 29
        assert await scheduler.tick() == []
        clock.t = 30
        assert await scheduler.tick() == ["refresh"]
        clock.t = 60
        assert await scheduler.tick() == ["sweep", "refresh"]
        assert scheduler.job("sweep").run_count == 2
        assert calls.count("refresh") == 3

    asyncio.run(run())


def test_failing_job_is_recorded_and_loop_continues(caplog):
    async def run():
        clock = ManualTime()
        ok = []

        async def broken():
            raise RuntimeError("api down")

        async def fine():
            ok.append(1)

        scheduler = IntervalScheduler(monotonic=clock)
        scheduler.register("broken", 10, broken)
        scheduler.register("fine", 10, fine)

        assert await scheduler.tick() == ["broken", "fine"]
        assert scheduler.job("broken").last_error == "api down"
        assert ok == [1]

    asyncio.run(run())
    assert "Scheduled job failed: name=broken" in caplog.text


def test_run_forever_stops():
    async def run():
        clock = ManualTime()
        ticks = []
        scheduler = None

        async def fake_sleep(seconds):
            clock.t += seconds
            if len(ticks) >= 3:
                scheduler.stop()

        async def job():
            ticks.append(clock.t)

        scheduler = IntervalScheduler(SchedulerConfig(poll_seconds=5), monotonic=clock, sleep=fake_sleep)
        scheduler.register("job", 10, job)
        await asyncio.wait_for(scheduler.run_forever(), timeout=1)
        assert ticks == [0.0, 10.0, 20.0]

    asyncio.run(run())


def test_register_rejects_non_positive_interval():
    scheduler = IntervalScheduler()
    with pytest.raises(ValueError):
        scheduler.register("bad", 0, lambda: None)
