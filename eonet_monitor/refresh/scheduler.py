# refresh/scheduler.py
# Periodic fetch -> normalize -> score cycle that owns the published result set

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from eonet_monitor.aggregation.regions import filter_by_region
from eonet_monitor.aggregation.time_buckets import DailyCount, bucket_by_day
from eonet_monitor.config import GLOBAL_REGION, REFRESH_INTERVAL_SECONDS
from eonet_monitor.data_collection.normalizer import Observation, normalize_events
from eonet_monitor.errors import MonitorError
from eonet_monitor.risk_assessment.assessor import RiskRecord, score_events

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshSnapshot:
    """Result of one successful refresh cycle. Replaced, never modified."""
    sequence: int
    observations: tuple[Observation, ...]
    risk_records: tuple[RiskRecord, ...]
    published_at: datetime | None


EMPTY_SNAPSHOT = RefreshSnapshot(sequence=0, observations=(), risk_records=(), published_at=None)


@dataclass(frozen=True)
class RefreshStatus:
    last_error: Exception | None = None
    last_attempt_at: datetime | None = None
    last_success_at: datetime | None = None
    consecutive_failures: int = 0

    @property
    def has_error(self) -> bool:
        return self.last_error is not None

    @property
    def is_stale(self) -> bool:
        """Data on display is older than the last attempt."""
        return self.has_error and self.last_success_at is not None

    @property
    def retryable(self) -> bool:
        return getattr(self.last_error, "retryable", True)

    @property
    def error_message(self) -> str | None:
        return None if self.last_error is None else str(self.last_error)


async def run_pipeline(fetch_feed: Callable[[], Awaitable[object]],
                       clock: Callable[[], datetime] | None = None) -> tuple[list[Observation], list[RiskRecord]]:
    """
    One fetch -> normalize -> score pass. Risk ages are measured when the
    feed has arrived. Errors propagate to the caller.
    """
    payload = await fetch_feed()
    observations = normalize_events(payload)
    now = clock() if clock is not None else datetime.now(timezone.utc)
    return observations, score_events(observations, now=now)


class RefreshScheduler:
    """
    Re-fetches one feed every `interval_seconds` and publishes the result.

    A tick that fires while a cycle is still running is dropped. Each cycle
    takes a sequence number and a result older than the published one is
    discarded. Failures keep the previous snapshot and are reported through
    `status`. After `stop()` nothing is published.

    Args:
        fetch_feed: Zero-argument coroutine function returning the raw feed.
        interval_seconds (float): Period between cycle starts.
        name (str): Label used in logs.
        clock: Returns the current aware datetime; used for ages and stamps.
    """

    def __init__(self, fetch_feed: Callable[[], Awaitable[object]],
                 interval_seconds: float = REFRESH_INTERVAL_SECONDS, name: str = "feed",
                 clock: Callable[[], datetime] | None = None):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.name = name
        self.interval_seconds = interval_seconds
        self._fetch_feed = fetch_feed
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._snapshot = EMPTY_SNAPSHOT
        self._status = RefreshStatus()
        self._sequence = itertools.count(1)
        self._last_failed_sequence = 0
        self._subscribers: list[Callable[[RefreshSnapshot], None]] = []

        self._timer_task: asyncio.Task | None = None
        self._cycle_tasks: set[asyncio.Task] = set()
        self._active_cycles = 0
        self._stopped = False

    # --- Lifecycle ---

    def start(self) -> None:
        """Starts the timer on the running event loop. The first cycle runs at once."""
        if self.is_running:
            return
        self._stopped = False
        self._timer_task = asyncio.get_running_loop().create_task(
            self._run_timer(), name=f"refresh-timer-{self.name}")
        logger.info(f"[{self.name}] Refresh scheduler started (every {self.interval_seconds:g}s)")

    def stop(self) -> None:
        """Cancels the timer and any cycle in flight. Late results are ignored."""
        self._stopped = True
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        for task in list(self._cycle_tasks):
            task.cancel()
        logger.info(f"[{self.name}] Refresh scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            self._tick(loop)
            await asyncio.sleep(self.interval_seconds)

    def _tick(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._active_cycles:
            logger.debug(f"[{self.name}] Previous refresh still running; skipping this tick")
            return
        task = loop.create_task(self.refresh_once(), name=f"refresh-cycle-{self.name}")
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    # --- One cycle ---

    async def refresh_once(self) -> bool:
        """
        Runs one fetch -> normalize -> score cycle.

        Returns:
            bool: True if a new snapshot was published.
        """
        if self._stopped:
            return False

        sequence = next(self._sequence)
        started_at = self._clock()
        self._active_cycles += 1
        try:
            observations, risk_records = await run_pipeline(self._fetch_feed, clock=self._clock)
        except asyncio.CancelledError:
            logger.info(f"[{self.name}] Refresh #{sequence} cancelled")
            raise
        except MonitorError as e:
            logger.warning(f"[{self.name}] Refresh #{sequence} failed ({type(e).__name__}): {e}. Keeping previous data.")
            self._record_failure(sequence, e, started_at)
            return False
        except Exception as e:
            logger.exception(f"[{self.name}] Unexpected error in refresh #{sequence}. Keeping previous data.")
            self._record_failure(sequence, e, started_at)
            return False
        finally:
            self._active_cycles -= 1

        return self._publish(sequence, observations, risk_records, started_at)

    def _record_failure(self, sequence: int, error: Exception, started_at: datetime) -> None:
        if self._stopped or sequence < self._snapshot.sequence:
            return
        self._last_failed_sequence = max(self._last_failed_sequence, sequence)
        previous = self._status
        self._status = RefreshStatus(
            last_error=error,
            last_attempt_at=started_at,
            last_success_at=previous.last_success_at,
            consecutive_failures=previous.consecutive_failures + 1,
        )

    def _publish(self, sequence: int, observations: list[Observation],
                 risk_records: list[RiskRecord], started_at: datetime) -> bool:
        if self._stopped:
            logger.debug(f"[{self.name}] Refresh #{sequence} finished after stop; not publishing")
            return False
        if sequence < self._snapshot.sequence:
            logger.info(f"[{self.name}] Discarding refresh #{sequence}; #{self._snapshot.sequence} is newer")
            return False

        snapshot = RefreshSnapshot(
            sequence=sequence,
            observations=tuple(observations),
            risk_records=tuple(risk_records),
            published_at=self._clock(),
        )
        self._snapshot = snapshot
        if sequence < self._last_failed_sequence:
            # A newer cycle already failed; its error stays visible
            previous = self._status
            self._status = RefreshStatus(
                last_error=previous.last_error,
                last_attempt_at=previous.last_attempt_at,
                last_success_at=snapshot.published_at,
                consecutive_failures=previous.consecutive_failures,
            )
        else:
            self._status = RefreshStatus(last_attempt_at=started_at, last_success_at=snapshot.published_at)
        logger.info(f"[{self.name}] Published refresh #{sequence}: "
                    f"{len(snapshot.observations)} observations, {len(snapshot.risk_records)} events")

        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"[{self.name}] Subscriber {callback!r} failed")
        return True

    # --- Read API ---

    @property
    def snapshot(self) -> RefreshSnapshot:
        return self._snapshot

    @property
    def status(self) -> RefreshStatus:
        return self._status

    def get_current_observations(self) -> tuple[Observation, ...]:
        return self._snapshot.observations

    def get_daily_counts(self, region: str = GLOBAL_REGION, chronological: bool = True) -> list[DailyCount]:
        observations = filter_by_region(self._snapshot.observations, region)
        return bucket_by_day(observations, chronological=chronological)

    def get_risk_records(self) -> tuple[RiskRecord, ...]:
        return self._snapshot.risk_records

    def subscribe(self, callback: Callable[[RefreshSnapshot], None]) -> Callable[[], None]:
        """Calls `callback(snapshot)` after every publish. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
