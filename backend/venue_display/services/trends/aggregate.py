"""
Bucket raw sales into a per-minute trend series for charting.

Pure functions, no state: the same events and the same `now` always give the same series,
whatever order the events arrive in. Empty minutes are left as gaps; the chart decides how to
draw them. Amounts are summed in their native unit (sats), no conversion.
"""
from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Protocol

from venue_display.core.constants import TREND_WINDOW_ALL_MINUTES, TREND_WINDOW_FALLBACK_MINUTES

_WINDOW_RE = re.compile(r"(\d+)([mh])", re.IGNORECASE)


class TimedAmount(Protocol):
    """Anything with a timestamp and an amount (TickerEntry qualifies)."""

    @property
    def timestamp(self) -> datetime: ...

    @property
    def amount(self) -> int | float: ...


@dataclass(frozen=True)
class TrendPoint:
    minute_start: datetime
    tx_count: int
    volume: int | float

    def to_dict(self) -> dict:
        return {
            "minute_start": self.minute_start.isoformat(),
            "tx_count": self.tx_count,
            "volume": self.volume,
        }


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def minute_bucket(ts: datetime) -> datetime:
    """Truncate to the minute (drop seconds and sub-seconds), in UTC."""
    return _utc(ts).replace(second=0, microsecond=0)


def aggregate(
    events: Iterable[TimedAmount],
    window_minutes: int,
    now: datetime | None = None,
) -> list[TrendPoint]:
    """
    One TrendPoint per minute that has at least one event inside [now - window_minutes, now],
    sorted by minute ascending.
    """
    events = list(events)
    if not events:
        return []
    now = _utc(now) if now is not None else datetime.now(timezone.utc)
    try:
        cutoff = now - timedelta(minutes=window_minutes)
    except OverflowError:
        # Window reaches past datetime.min; everything up to now is inside it
        cutoff = datetime.min.replace(tzinfo=timezone.utc)
    counts: dict[datetime, int] = defaultdict(int)
    volumes: dict[datetime, int | float] = defaultdict(int)
    for event in events:
        ts = _utc(event.timestamp)
        if ts < cutoff or ts > now:
            continue
        key = minute_bucket(ts)
        counts[key] += 1
        volumes[key] += event.amount
    return [TrendPoint(minute_start=key, tx_count=counts[key], volume=volumes[key]) for key in sorted(counts)]


def window_minutes_for(label: str | None) -> int:
    """'all' -> one day, '<n>m' -> n, '<n>h' -> n*60, anything else -> 60."""
    if not label:
        return TREND_WINDOW_FALLBACK_MINUTES
    if label.strip().lower() == "all":
        return TREND_WINDOW_ALL_MINUTES
    match = _WINDOW_RE.search(label)
    if not match:
        return TREND_WINDOW_FALLBACK_MINUTES
    value = int(match.group(1))
    return value * 60 if match.group(2).lower() == "h" else value


def newest_event_time(events: Iterable[TimedAmount]) -> datetime | None:
    """Latest timestamp in the stream, or None when it is empty."""
    stamps = [_utc(e.timestamp) for e in events]
    return max(stamps) if stamps else None
