"""
Trend series: raw ticker sales -> one-minute buckets inside a sliding window ending at `now`.
"""
from venue_display.services.trends.aggregate import (
    TrendPoint,
    aggregate,
    minute_bucket,
    newest_event_time,
    window_minutes_for,
)

__all__ = ["TrendPoint", "aggregate", "minute_bucket", "newest_event_time", "window_minutes_for"]
