"""
Scene rotation: which scene is on screen and when the next one comes up.

One single-shot timer is armed for the active scene's full duration. A fire advances the
index modulo the rotation length and rearms; pause() cancels the timer, resume() and skip()
rearm the full duration (no credit for partially elapsed dwell). Every arm/cancel bumps a
generation counter so a fire that was already queued when the state changed is ignored.
"""
from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Callable, Iterable

from venue_display.core.constants import SCENE_TIMER_JOB_ID
from venue_display.core.errors import ConfigurationEmptyError, ShutdownRaceError
from venue_display.scheduler.timers import TimerHandle, Timers
from venue_display.services.source.types import SceneDescriptor

logger = logging.getLogger(__name__)

NO_SCENE = ""

SceneListener = Callable[[str], None]


class RotationState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class SceneScheduler:
    __slots__ = ("_timers", "_scenes", "_index", "_started", "_paused", "_handle", "_generation", "_listener")

    def __init__(
        self,
        timers: Timers,
        scenes: Iterable[SceneDescriptor] = (),
        *,
        listener: SceneListener | None = None,
    ) -> None:
        self._timers = timers
        self._scenes: tuple[SceneDescriptor, ...] = tuple(scenes)
        self._index = 0
        self._started = False
        self._paused = False
        self._handle: TimerHandle | None = None
        self._generation = 0
        self._listener = listener

    # ------------------------------------------------------------------ reads

    @property
    def state(self) -> RotationState:
        if not self._started:
            return RotationState.STOPPED
        return RotationState.PAUSED if self._paused else RotationState.RUNNING

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def scenes(self) -> tuple[SceneDescriptor, ...]:
        return self._scenes

    @property
    def active_index(self) -> int:
        if not self._scenes:
            return 0
        # Rotation may have shrunk since the index was last written
        self._index %= len(self._scenes)
        return self._index

    def active_scene(self) -> SceneDescriptor:
        if not self._scenes:
            raise ConfigurationEmptyError("scene rotation is empty")
        return self._scenes[self.active_index]

    def current_scene_id(self) -> str:
        try:
            return self.active_scene().id
        except ConfigurationEmptyError:
            return NO_SCENE

    # ------------------------------------------------------------- transitions

    def configure(self, scenes: Iterable[SceneDescriptor]) -> None:
        """Swap the rotation. The active scene keeps its slot if still present, else index 0."""
        new_scenes = tuple(scenes)
        previous = self.active_scene() if self._scenes else None
        self._scenes = new_scenes

        if not new_scenes:
            self._cancel()
            self._index = 0
            logger.warning("Scene rotation is empty; showing placeholder")
            self._notify(previous.id if previous else NO_SCENE)
            return

        ids = [s.id for s in new_scenes]
        if previous is not None and previous.id in ids:
            self._index = ids.index(previous.id)
        else:
            self._index = 0
        active = new_scenes[self._index]

        if self._started and not self._paused:
            if self._handle is None or previous is None or active.duration_ms != previous.duration_ms:
                self._arm()
        logger.info("Scene rotation configured: %s", ", ".join(ids))
        self._notify(previous.id if previous else NO_SCENE)

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        if not self._paused:
            self._arm()
        logger.info("Scene rotation started on %r", self.current_scene_id())

    def stop(self) -> None:
        self._cancel()
        self._started = False
        self._paused = False

    def pause(self) -> None:
        self._cancel()
        if not self._paused:
            self._paused = True
            logger.debug("Scene rotation paused on %r", self.current_scene_id())

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        if self._started:
            self._arm()
        logger.debug("Scene rotation resumed on %r", self.current_scene_id())

    def skip(self) -> None:
        """Advance now, whether paused or not; a running rotation restarts the full dwell."""
        if not self._scenes:
            return
        previous = self.current_scene_id()
        self._advance()
        if self._started and not self._paused:
            self._arm()
        self._notify(previous)

    # --------------------------------------------------------------- internals

    def _advance(self) -> None:
        self._index = (self.active_index + 1) % len(self._scenes)

    def _cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self) -> None:
        self._cancel()
        if not self._scenes:
            return
        scene = self.active_scene()
        self._handle = self._timers.call_later(
            scene.duration_seconds,
            partial(self._on_timer, self._generation),
            name=SCENE_TIMER_JOB_ID,
        )

    def _ensure_live(self, generation: int) -> None:
        if generation != self._generation or not self._started or self._paused:
            raise ShutdownRaceError(f"scene timer generation {generation} is stale")

    def _on_timer(self, generation: int) -> None:
        try:
            self._ensure_live(generation)
        except ShutdownRaceError as e:
            logger.debug("Ignoring scene timer: %s", e)
            return
        self._handle = None
        previous = self.current_scene_id()
        if self._scenes:
            self._advance()
        self._arm()
        self._notify(previous)

    def _notify(self, previous: str) -> None:
        current = self.current_scene_id()
        if self._listener is not None and current != previous:
            self._listener(current)
