"""
Owned, cancellable timers on the asyncio event loop.

Components never call asyncio or APScheduler directly; they receive a Timers object and keep
the returned handle so pause/stop/reconfigure can cancel it. SchedulerTimers backs this with
APScheduler's AsyncIOScheduler. Every job is wrapped in a coroutine so the callback runs on
the loop thread (plain functions would otherwise be sent to a worker thread) and handlers
never interleave.
"""
import inspect
import itertools
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None] | None]


async def run_callback(callback: Callback) -> None:
    """Call a timer callback and await it when it is a coroutine function."""
    result = callback()
    if inspect.isawaitable(result):
        await result


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timers(Protocol):
    """Clock + timer factory shared by the rotation scheduler, milestone poller and orchestrator."""

    def now(self) -> datetime:
        ...

    def call_later(self, delay_seconds: float, callback: Callback, *, name: str = "") -> TimerHandle:
        """Single-shot timer."""
        ...

    def call_every(
        self,
        interval_seconds: float,
        callback: Callback,
        *,
        name: str = "",
        immediate: bool = True,
    ) -> TimerHandle:
        """Periodic timer; with immediate=True the first run is now rather than one interval out."""
        ...


class _JobHandle:
    __slots__ = ("_job",)

    def __init__(self, job) -> None:
        self._job = job

    def cancel(self) -> None:
        try:
            self._job.remove()
        except JobLookupError:
            # One-shot already ran (APScheduler drops it) or cancelled twice
            pass


class SchedulerTimers:
    """Timers backed by an APScheduler AsyncIOScheduler running on the current event loop."""

    def __init__(self, scheduler: AsyncIOScheduler | None = None) -> None:
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self._seq = itertools.count(1)

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler

    def start(self) -> None:
        """Start the scheduler. Must be called with the event loop running (e.g. in a lifespan)."""
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Timer scheduler started")

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Timer scheduler stopped")

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _job_id(self, name: str) -> str:
        return f"{name or 'timer'}-{next(self._seq)}"

    def call_later(self, delay_seconds: float, callback: Callback, *, name: str = "") -> TimerHandle:
        run_date = self.now() + timedelta(seconds=max(0.0, delay_seconds))
        job = self._scheduler.add_job(
            run_callback,
            "date",
            run_date=run_date,
            args=[callback],
            id=self._job_id(name),
            misfire_grace_time=None,
        )
        return _JobHandle(job)

    def call_every(
        self,
        interval_seconds: float,
        callback: Callback,
        *,
        name: str = "",
        immediate: bool = True,
    ) -> TimerHandle:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        extra = {"next_run_time": self.now()} if immediate else {}
        job = self._scheduler.add_job(
            run_callback,
            "interval",
            seconds=interval_seconds,
            args=[callback],
            id=self._job_id(name),
            coalesce=True,
            max_instances=1,
            misfire_grace_time=None,
            **extra,
        )
        return _JobHandle(job)
