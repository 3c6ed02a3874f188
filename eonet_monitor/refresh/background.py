# refresh/background.py
# Runs refresh schedulers on a private event loop thread, for the Streamlit app

import asyncio
import logging
import threading

from eonet_monitor.refresh.scheduler import RefreshScheduler

logger = logging.getLogger(__name__)


class BackgroundRefresher:
    """
    Owns one daemon thread running an asyncio loop. Schedulers added here run
    on that loop; other threads only read their published snapshots.
    """

    def __init__(self, name: str = "eonet-refresh"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name=name, daemon=True)
        self._schedulers: list[RefreshScheduler] = []
        self._thread.start()
        logger.info(f"Background refresh loop '{name}' started")

    def add(self, scheduler: RefreshScheduler) -> RefreshScheduler:
        self._schedulers.append(scheduler)
        self._loop.call_soon_threadsafe(scheduler.start)
        return scheduler

    def refresh_now(self, scheduler: RefreshScheduler, timeout: float | None = None) -> bool:
        """Runs one cycle on the background loop and waits for its outcome."""
        future = asyncio.run_coroutine_threadsafe(scheduler.refresh_once(), self._loop)
        return future.result(timeout)

    def shutdown(self) -> None:
        for scheduler in self._schedulers:
            self._loop.call_soon_threadsafe(scheduler.stop)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        logger.info("Background refresh loop stopped")
