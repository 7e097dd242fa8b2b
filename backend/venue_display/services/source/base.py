"""Protocol for the event source. The HTTP client and test fakes share this contract."""
from datetime import datetime
from typing import Protocol

from venue_display.services.source.types import MilestoneEvent, SceneRecord, Summary, TickerEntry


class EventSource(Protocol):
    """Read-only, polled collaborator. Every method raises EventSourceError on failure."""

    async def fetch_summary(self) -> Summary:
        ...

    async def fetch_recent_events(self, limit: int) -> list[TickerEntry]:
        """Latest sales, newest first (order is irrelevant to the aggregator)."""
        ...

    async def fetch_milestone_triggers(self, since: datetime) -> list[MilestoneEvent]:
        """
        Triggers fired at or after `since`. The upstream query is inclusive, so callers that
        need strictly-newer events filter on their side.
        """
        ...

    async def fetch_scene_configuration(self) -> list[SceneRecord]:
        ...
