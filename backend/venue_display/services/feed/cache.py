"""
In-memory feed cache: last good summary + ticker, refreshed on a timer.
A failed refresh keeps the previous copy so the display keeps showing the last known state.
Results that resolve after invalidate() (orchestrator stop) are dropped.
"""
import logging
from datetime import datetime

from venue_display.core.errors import EventSourceError, ShutdownRaceError
from venue_display.services.source.base import EventSource
from venue_display.services.source.types import Summary, TickerEntry
from venue_display.services.trends.aggregate import TrendPoint, aggregate, newest_event_time, window_minutes_for

logger = logging.getLogger(__name__)


class FeedCache:
    __slots__ = ("_source", "_ticker_limit", "_generation", "summary", "ticker", "updated_at", "last_error")

    def __init__(self, source: EventSource, *, ticker_limit: int = 50) -> None:
        self._source = source
        self._ticker_limit = ticker_limit
        self._generation = 0
        self.summary: Summary | None = None
        self.ticker: list[TickerEntry] | None = None
        self.updated_at: datetime | None = None
        self.last_error: EventSourceError | None = None

    @property
    def has_ticker(self) -> bool:
        return self.ticker is not None

    def invalidate(self) -> None:
        """Drop the results of any refresh still in flight."""
        self._generation += 1

    def _ensure_live(self, generation: int) -> None:
        if generation != self._generation:
            raise ShutdownRaceError(f"feed refresh generation {generation} was invalidated")

    async def refresh(self, now: datetime) -> bool:
        """Fetch summary and ticker. Each half is kept independently; returns True if both succeeded."""
        generation = self._generation
        try:
            return await self._refresh(now, generation)
        except ShutdownRaceError as e:
            logger.debug("Discarding feed refresh: %s", e)
            return False

    async def _refresh(self, now: datetime, generation: int) -> bool:
        ok = True
        try:
            summary = await self._source.fetch_summary()
        except EventSourceError as e:
            self._ensure_live(generation)
            logger.warning("Summary refresh failed (keeping last good copy): %s", e)
            self.last_error = e
            ok = False
        else:
            self._ensure_live(generation)
            self.summary = summary
        try:
            ticker = await self._source.fetch_recent_events(self._ticker_limit)
        except EventSourceError as e:
            self._ensure_live(generation)
            logger.warning("Ticker refresh failed (keeping last good copy): %s", e)
            self.last_error = e
            ok = False
        else:
            self._ensure_live(generation)
            self.ticker = ticker
        if ok:
            self.last_error = None
            self.updated_at = now
            logger.debug("Feed cache refreshed (%s ticker rows)", len(self.ticker or []))
        return ok

    def trend_series(self, window: str, now: datetime) -> list[TrendPoint]:
        return aggregate(self.ticker or [], window_minutes_for(window), now=now)

    def newest_sale_at(self) -> datetime | None:
        return newest_event_time(self.ticker or [])
