import asyncio
import concurrent.futures
import threading

import pytest

from eonet_monitor.refresh.background import BackgroundRefresher
from eonet_monitor.refresh.scheduler import RefreshScheduler


def test_scheduler_runs_on_background_loop(fire_feed):
    published = threading.Event()
    loop_threads = set()

    async def fetch():
        loop_threads.add(threading.current_thread().name)
        return fire_feed

    scheduler = RefreshScheduler(fetch, interval_seconds=60, name="bg")
    scheduler.subscribe(lambda snapshot: published.set())
    refresher = BackgroundRefresher(name="test-refresh")
    try:
        refresher.add(scheduler)
        assert published.wait(timeout=5)
        assert len(scheduler.get_current_observations()) == 4

        assert refresher.refresh_now(scheduler, timeout=5) is True
        assert scheduler.snapshot.sequence == 2
    finally:
        refresher.shutdown()

    assert loop_threads == {"test-refresh"}


def test_refresh_now_times_out_while_cycle_keeps_running(fire_feed):
    async def slow_fetch():
        await asyncio.sleep(0.5)
        return fire_feed

    scheduler = RefreshScheduler(slow_fetch, interval_seconds=60, name="slow")
    refresher = BackgroundRefresher(name="test-slow")
    try:
        with pytest.raises(concurrent.futures.TimeoutError):
            refresher.refresh_now(scheduler, timeout=0.05)
    finally:
        refresher.shutdown()
