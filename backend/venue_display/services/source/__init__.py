"""
Event source: the point-of-sale backend the display reads from.
The HTTP client and test fakes implement the same EventSource protocol and return the same
wire types, so the rotation, milestone and trend services stay transport-agnostic.
"""
from venue_display.services.source.base import EventSource
from venue_display.services.source.client import EventSourceClient, format_since
from venue_display.services.source.config import SourceConfig
from venue_display.services.source.types import (
    MilestoneEvent,
    SceneDescriptor,
    SceneRecord,
    Summary,
    TickerEntry,
)

__all__ = [
    "EventSource",
    "EventSourceClient",
    "MilestoneEvent",
    "SceneDescriptor",
    "SceneRecord",
    "SourceConfig",
    "Summary",
    "TickerEntry",
    "format_since",
]
