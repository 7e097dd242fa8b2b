"""
Orchestrator: composes rotation, milestone polling and the feed cache into one display.

A delivered milestone pauses the rotation and shows a celebration for a fixed dwell (shorter
when reduced motion is preferred); on expiry the celebration clears and the rotation resumes on
the scene it was paused on, with a fresh full duration. A milestone that arrives mid-celebration
replaces it and restarts the dwell (last event wins, no queue).

Rotation configuration starts as the built-in default and is swapped in place whenever the remote
scene configuration resolves.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Callable, Iterable

from venue_display.core.constants import (
    CELEBRATION_DWELL_JOB_ID,
    CELEBRATION_EFFECTS,
    DEFAULT_DWELL_SECONDS,
    DISPLAY_MODE_VENUE,
    FEED_REFRESH_JOB_ID,
    REDUCED_MOTION_DWELL_SECONDS,
    SCENE_REFRESH_JOB_ID,
)
from venue_display.core.errors import EventSourceError, ShutdownRaceError
from venue_display.scheduler.timers import TimerHandle, Timers
from venue_display.services.feed.cache import FeedCache
from venue_display.services.milestones.poller import MilestoneDedupPoller
from venue_display.services.rotation.scenes import build_rotation, default_rotation
from venue_display.services.rotation.scheduler import NO_SCENE, SceneScheduler
from venue_display.services.source.base import EventSource
from venue_display.services.source.types import MilestoneEvent, SceneDescriptor
from venue_display.services.trends.aggregate import TrendPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Celebration:
    event: MilestoneEvent
    effect: str
    shown_at: datetime
    dwell_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "milestone": self.event.model_dump(mode="json", by_alias=True),
            "effect": self.effect,
            "shown_at": self.shown_at.isoformat(),
            "dwell_seconds": self.dwell_seconds,
        }


def _parse_scene_ids(raw: str) -> frozenset[str] | None:
    ids = frozenset(s.strip() for s in (raw or "").split(",") if s.strip())
    return ids or None


@dataclass
class OrchestratorOptions:
    mode: str = DISPLAY_MODE_VENUE
    milestone_poll_seconds: float = 10.0
    feed_refresh_seconds: float = 10.0
    scene_refresh_seconds: float = 60.0
    dwell_seconds: float = DEFAULT_DWELL_SECONDS
    reduced_motion_dwell_seconds: float = REDUCED_MOTION_DWELL_SECONDS
    trend_window: str = "all"
    ticker_limit: int = 50
    renderable_scenes: frozenset[str] | None = None
    scenes: list[SceneDescriptor] = field(default_factory=default_rotation)

    @classmethod
    def from_settings(cls, settings) -> OrchestratorOptions:
        return cls(
            mode=settings.display_mode,
            milestone_poll_seconds=settings.milestone_poll_seconds,
            feed_refresh_seconds=settings.feed_refresh_seconds,
            scene_refresh_seconds=settings.scene_refresh_seconds,
            dwell_seconds=settings.celebration_dwell_seconds,
            reduced_motion_dwell_seconds=settings.reduced_motion_dwell_seconds,
            trend_window=settings.trend_window,
            ticker_limit=settings.ticker_limit,
            renderable_scenes=_parse_scene_ids(settings.renderable_scenes),
        )


class DisplayOrchestrator:
    def __init__(
        self,
        source: EventSource,
        timers: Timers,
        *,
        options: OrchestratorOptions | None = None,
        prefers_reduced_motion: Callable[[], bool] = lambda: False,
        rng: random.Random | None = None,
    ) -> None:
        self._source = source
        self._timers = timers
        self.options = options or OrchestratorOptions()
        self._prefers_reduced_motion = prefers_reduced_motion
        self._rng = rng or random.Random()

        self.scheduler = SceneScheduler(timers, self.options.scenes, listener=self._on_scene_change)
        self.poller = MilestoneDedupPoller(source, self._on_milestone, timers)
        self.feed = FeedCache(source, ticker_limit=self.options.ticker_limit)

        self._celebration: Celebration | None = None
        self._dwell_handle: TimerHandle | None = None
        self._dwell_generation = 0
        self._refresh_handles: list[TimerHandle] = []
        self._started = False

    # ------------------------------------------------------------------ lifecycle

    @property
    def started(self) -> bool:
        return self._started

    @property
    def venue_mode(self) -> bool:
        return self.options.mode == DISPLAY_MODE_VENUE

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._refresh_handles.append(
            self._timers.call_every(self.options.feed_refresh_seconds, self.refresh_feed, name=FEED_REFRESH_JOB_ID)
        )
        if self.venue_mode:
            self._refresh_handles.append(
                self._timers.call_every(
                    self.options.scene_refresh_seconds, self.refresh_scenes, name=SCENE_REFRESH_JOB_ID
                )
            )
            self.scheduler.start()
            self.poller.start(self.options.milestone_poll_seconds)
        logger.info("Display orchestrator started in %s mode", self.options.mode)

    def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        for handle in self._refresh_handles:
            handle.cancel()
        self._refresh_handles.clear()
        self.poller.stop()
        self.feed.invalidate()
        self._cancel_dwell()
        self._celebration = None
        self.scheduler.stop()
        logger.info("Display orchestrator stopped")

    # ----------------------------------------------------------- rendering surface

    def current_scene_id(self) -> str:
        return self.scheduler.current_scene_id()

    def skip(self) -> str:
        self.scheduler.skip()
        return self.scheduler.current_scene_id()

    @property
    def celebration(self) -> Celebration | None:
        return self._celebration

    def dwell_seconds(self) -> float:
        if self._prefers_reduced_motion():
            return self.options.reduced_motion_dwell_seconds
        return self.options.dwell_seconds

    def trend_series(self, window: str | None = None) -> list[TrendPoint]:
        return self.feed.trend_series(window or self.options.trend_window, self._timers.now())

    def scene_state(self) -> dict[str, Any]:
        scene_id = self.current_scene_id()
        return {
            "scene_id": scene_id,
            "placeholder": scene_id == NO_SCENE,
            "paused": self.scheduler.paused,
            "state": self.scheduler.state.value,
        }

    def snapshot(self) -> dict[str, Any]:
        return {
            "mode": self.options.mode,
            **self.scene_state(),
            "scenes": [s.id for s in self.scheduler.scenes],
            "celebration": self._celebration.to_dict() if self._celebration else None,
            "summary": self.feed.summary.model_dump() if self.feed.summary else None,
            "trends": [p.to_dict() for p in self.trend_series()],
            "milestone_watermark": self.poller.watermark.isoformat(),
            "feed_updated_at": self.feed.updated_at.isoformat() if self.feed.updated_at else None,
        }

    # ------------------------------------------------------------- configuration

    def configure(self, scenes: Iterable[SceneDescriptor]) -> None:
        self.scheduler.configure(scenes)

    async def refresh_scenes(self) -> None:
        try:
            records = await self._source.fetch_scene_configuration()
        except EventSourceError as e:
            logger.warning("Scene configuration refresh failed (keeping current rotation): %s", e)
            return
        if not self._started:
            return
        rotation = build_rotation(records, self.options.renderable_scenes)
        if rotation == list(self.scheduler.scenes):
            return
        self.configure(rotation)

    async def refresh_feed(self) -> None:
        if not self._started:
            return
        await self.feed.refresh(self._timers.now())

    # ---------------------------------------------------------------- celebrations

    def _on_scene_change(self, scene_id: str) -> None:
        logger.debug("Scene -> %r", scene_id or "<placeholder>")

    def _on_milestone(self, event: MilestoneEvent) -> None:
        if not self._started:
            return
        dwell = self.dwell_seconds()
        replacing = self._celebration is not None
        self._celebration = Celebration(
            event=event,
            effect=self._rng.choice(CELEBRATION_EFFECTS),
            shown_at=self._timers.now(),
            dwell_seconds=dwell,
        )
        self.scheduler.pause()
        self._cancel_dwell()
        self._dwell_handle = self._timers.call_later(
            dwell,
            partial(self._on_dwell_expired, self._dwell_generation),
            name=CELEBRATION_DWELL_JOB_ID,
        )
        logger.info(
            "%s celebration for %s (%s, %ss)",
            "Replacing" if replacing else "Showing",
            event.name,
            self._celebration.effect,
            dwell,
        )

    def _cancel_dwell(self) -> None:
        self._dwell_generation += 1
        if self._dwell_handle is not None:
            self._dwell_handle.cancel()
            self._dwell_handle = None

    def _ensure_dwell_live(self, generation: int) -> None:
        if generation != self._dwell_generation or not self._started:
            raise ShutdownRaceError(f"dwell generation {generation} is stale")

    def _on_dwell_expired(self, generation: int) -> None:
        try:
            self._ensure_dwell_live(generation)
        except ShutdownRaceError as e:
            logger.debug("Ignoring dwell timer: %s", e)
            return
        self._dwell_handle = None
        self._celebration = None
        self.scheduler.resume()
