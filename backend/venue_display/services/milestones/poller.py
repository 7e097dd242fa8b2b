"""
Milestone polling with at-most-once delivery.

Every tick asks the event source for triggers since the watermark. The watermark only moves
forward, to the newest triggered_at of a batch, and at most one event is delivered per tick:
the newest one (backlogs show the latest achievement, not stale ones). Dedup is by watermark,
not by remembering ids, so memory stays constant; simultaneous milestones collapse to the
latest one per tick.

Failures never touch the watermark. Responses that resolve after stop() are dropped by a
generation check.
"""
from __future__ import annotations

import logging
from datetime import datetime
from functools import partial
from typing import Callable, Sequence

from venue_display.core.constants import MILESTONE_POLL_JOB_ID
from venue_display.core.errors import EventSourceError, ShutdownRaceError, StaleResponseError
from venue_display.scheduler.timers import TimerHandle, Timers
from venue_display.services.source.base import EventSource
from venue_display.services.source.types import MilestoneEvent

logger = logging.getLogger(__name__)

MilestoneConsumer = Callable[[MilestoneEvent], None]


class Watermark:
    """Timestamp boundary below which triggers count as already seen. Never rewound."""

    __slots__ = ("_value",)

    def __init__(self, initial: datetime) -> None:
        if initial.tzinfo is None:
            raise ValueError("watermark must be timezone-aware")
        self._value = initial

    @property
    def value(self) -> datetime:
        return self._value

    def advance(self, candidate: datetime) -> None:
        if candidate <= self._value:
            raise StaleResponseError(
                f"newest trigger {candidate.isoformat()} does not pass watermark {self._value.isoformat()}"
            )
        self._value = candidate


def newest_event(events: Sequence[MilestoneEvent]) -> MilestoneEvent | None:
    """Greatest by (triggered_at, id); None for an empty batch."""
    if not events:
        return None
    return max(events, key=lambda e: e.sort_key)


class MilestoneDedupPoller:
    __slots__ = ("_source", "_consumer", "_timers", "_watermark", "_handle", "_generation", "_running", "_in_flight")

    def __init__(
        self,
        source: EventSource,
        consumer: MilestoneConsumer,
        timers: Timers,
        *,
        since: datetime | None = None,
    ) -> None:
        self._source = source
        self._consumer = consumer
        self._timers = timers
        # Default: only celebrate what fires after the display came up
        self._watermark = Watermark(since or timers.now())
        self._handle: TimerHandle | None = None
        self._generation = 0
        self._running = False
        self._in_flight = False

    @property
    def watermark(self) -> datetime:
        return self._watermark.value

    @property
    def running(self) -> bool:
        return self._running

    def start(self, poll_interval_seconds: float) -> None:
        """Poll now, then every poll_interval_seconds."""
        if self._running:
            return
        self._running = True
        self._generation += 1
        self._handle = self._timers.call_every(
            poll_interval_seconds,
            partial(self._tick, self._generation),
            name=MILESTONE_POLL_JOB_ID,
            immediate=True,
        )
        logger.info(
            "Milestone polling every %ss from watermark %s", poll_interval_seconds, self._watermark.value.isoformat()
        )

    def stop(self) -> None:
        self._generation += 1
        self._running = False
        self._in_flight = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def _tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        if self._in_flight:
            logger.debug("Milestone poll still in flight; skipping tick")
            return
        await self.poll_once()

    async def poll_once(self) -> MilestoneEvent | None:
        """One poll cycle. Returns the delivered event, or None when nothing new was surfaced."""
        generation = self._generation
        since = self._watermark.value
        self._in_flight = True
        try:
            events = await self._source.fetch_milestone_triggers(since)
        except EventSourceError as e:
            try:
                self._ensure_live(generation)
            except ShutdownRaceError as race:
                logger.debug("Discarding milestone poll failure (%s): %s", e, race)
                return None
            logger.warning("Milestone poll failed; watermark stays at %s: %s", since.isoformat(), e)
            return None
        finally:
            if generation == self._generation:
                self._in_flight = False

        try:
            self._ensure_live(generation)
        except ShutdownRaceError as e:
            logger.debug("Discarding milestone response: %s", e)
            return None
        return self._apply(events, since)

    def _ensure_live(self, generation: int) -> None:
        if generation != self._generation:
            raise ShutdownRaceError(f"poll generation {generation} ended before its response arrived")

    def _apply(self, events: Sequence[MilestoneEvent], since: datetime) -> MilestoneEvent | None:
        # Upstream returns triggered_at >= since; only strictly newer ones are candidates
        fresh = [e for e in events if e.triggered_at > since]
        newest = newest_event(fresh)
        if newest is None:
            if events:
                logger.debug("Milestone poll returned %s already-seen trigger(s)", len(events))
            return None
        try:
            self._watermark.advance(newest.triggered_at)
        except StaleResponseError as e:
            logger.debug("Stale milestone response: %s", e)
            return None
        if len(fresh) > 1:
            logger.info("Milestone backlog of %s; surfacing only the newest (%s)", len(fresh), newest.name)
        logger.info("Milestone reached: %s (%s %s)", newest.name, newest.kind, newest.threshold)
        self._consumer(newest)
        return newest
