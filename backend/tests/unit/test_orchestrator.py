"""Orchestrator: celebrations pause the rotation, dwell, then resume; remote scene swaps; modes."""

from __future__ import annotations

import asyncio
import random

import pytest

from source_fakes import at, milestone, sale, scene_row
from venue_display.core.constants import (
    CELEBRATION_DWELL_JOB_ID,
    CELEBRATION_EFFECTS,
    DISPLAY_MODE_ATTENDEE,
    FEED_REFRESH_JOB_ID,
    MILESTONE_POLL_JOB_ID,
    SCENE_REFRESH_JOB_ID,
    SCENE_TIMER_JOB_ID,
)
from venue_display.core.errors import TransientFetchError
from venue_display.orchestrator import DisplayOrchestrator, OrchestratorOptions
from venue_display.services.rotation import RotationState
from venue_display.services.source.types import SceneDescriptor


def _build(source, timers, *, reduced_motion: bool = False, **overrides) -> DisplayOrchestrator:
    source.scenes = [scene_row("a", order=1, duration=30_000), scene_row("b", order=2, duration=30_000)]
    options = OrchestratorOptions(
        milestone_poll_seconds=10,
        feed_refresh_seconds=10,
        scene_refresh_seconds=60,
        dwell_seconds=6,
        reduced_motion_dwell_seconds=3,
        scenes=[SceneDescriptor(id="a", duration_ms=30_000), SceneDescriptor(id="b", duration_ms=30_000)],
    )
    for key, value in overrides.items():
        setattr(options, key, value)
    return DisplayOrchestrator(
        source,
        timers,
        options=options,
        prefers_reduced_motion=lambda: reduced_motion,
        rng=random.Random(7),
    )


@pytest.mark.asyncio
async def test_milestone_pauses_rotation_then_resumes_same_scene(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()
    assert orch.current_scene_id() == "a"

    source.triggers.append(milestone(1, at(4), name="100 sales"))
    await timers.advance(10)

    celebration = orch.celebration
    assert celebration is not None
    assert celebration.event.id == 1
    assert celebration.effect in CELEBRATION_EFFECTS
    assert celebration.dwell_seconds == 6
    assert orch.scheduler.state is RotationState.PAUSED
    assert timers.pending(SCENE_TIMER_JOB_ID) == []

    await timers.advance(5.9)
    assert orch.celebration is not None
    await timers.advance(0.1)
    assert orch.celebration is None
    assert orch.scheduler.state is RotationState.RUNNING
    assert orch.current_scene_id() == "a"

    # resumed with a fresh full duration from t=16
    await timers.advance(29.9)
    assert orch.current_scene_id() == "a"
    await timers.advance(0.1)
    assert orch.current_scene_id() == "b"


@pytest.mark.asyncio
async def test_reduced_motion_shortens_dwell(source, timers) -> None:
    orch = _build(source, timers, reduced_motion=True)
    orch.start()
    await timers.advance()

    source.triggers.append(milestone(1, at(4)))
    await timers.advance(10)
    assert orch.celebration.dwell_seconds == 3

    await timers.advance(3)
    assert orch.celebration is None
    assert not orch.scheduler.paused


@pytest.mark.asyncio
async def test_new_milestone_replaces_celebration_and_restarts_dwell(source, timers) -> None:
    orch = _build(source, timers, milestone_poll_seconds=2)
    orch.start()
    await timers.advance()

    source.triggers.append(milestone(1, at(1)))
    await timers.advance(2)
    assert orch.celebration.event.id == 1

    source.triggers.append(milestone(2, at(3)))
    await timers.advance(2)
    assert orch.celebration.event.id == 2
    assert len(timers.pending(CELEBRATION_DWELL_JOB_ID)) == 1

    await timers.advance(4)
    assert orch.celebration.event.id == 2
    assert orch.scheduler.paused
    await timers.advance(2)
    assert orch.celebration is None
    assert not orch.scheduler.paused


@pytest.mark.asyncio
async def test_skip_during_celebration_keeps_rotation_paused(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()
    source.triggers.append(milestone(1, at(4)))
    await timers.advance(10)

    assert orch.skip() == "b"
    assert orch.scheduler.paused
    assert orch.celebration is not None

    await timers.advance(6)
    assert orch.celebration is None
    assert orch.current_scene_id() == "b"
    assert orch.scheduler.state is RotationState.RUNNING


@pytest.mark.asyncio
async def test_celebration_serializes_milestone_wire_names(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()
    source.triggers.append(milestone(5, at(4), name="1M sats", kind="volume", threshold=1_000_000))
    await timers.advance(10)

    payload = orch.celebration.to_dict()

    assert payload["milestone"]["type"] == "volume"
    assert payload["milestone"]["threshold"] == 1_000_000
    assert "total_volume_sats" in payload["milestone"]
    assert payload["dwell_seconds"] == 6
    assert payload["shown_at"] == at(10).isoformat()


@pytest.mark.asyncio
async def test_remote_scene_configuration_replaces_rotation(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()

    source.scenes = [
        scene_row("wifi", order=2, duration=5_000),
        scene_row("hidden", order=0, enabled=False),
        scene_row("overview", order=1, duration=5_000),
    ]
    await orch.refresh_scenes()

    assert [s.id for s in orch.scheduler.scenes] == ["overview", "wifi"]
    assert orch.current_scene_id() == "overview"
    await timers.advance(5)
    assert orch.current_scene_id() == "wifi"


@pytest.mark.asyncio
async def test_remote_scenes_without_renderer_are_skipped(source, timers) -> None:
    orch = _build(source, timers, renderable_scenes=frozenset({"a", "wifi"}))
    orch.start()
    await timers.advance()

    source.scenes = [scene_row("leaderboard", order=1), scene_row("wifi", order=2)]
    await orch.refresh_scenes()

    assert [s.id for s in orch.scheduler.scenes] == ["wifi"]


@pytest.mark.asyncio
async def test_unchanged_scene_configuration_leaves_timer_alone(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()
    timer = timers.pending(SCENE_TIMER_JOB_ID)[0]

    await orch.refresh_scenes()

    assert timers.pending(SCENE_TIMER_JOB_ID) == [timer]


@pytest.mark.asyncio
async def test_empty_scene_configuration_shows_placeholder(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()

    source.scenes = [scene_row("a", order=1, enabled=False)]
    await orch.refresh_scenes()

    assert orch.scene_state() == {"scene_id": "", "placeholder": True, "paused": False, "state": "running"}
    assert timers.pending(SCENE_TIMER_JOB_ID) == []


@pytest.mark.asyncio
async def test_failed_scene_fetch_keeps_current_rotation(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()

    source.errors["scenes"] = TransientFetchError("timeout")
    await orch.refresh_scenes()

    assert [s.id for s in orch.scheduler.scenes] == ["a", "b"]
    assert orch.current_scene_id() == "a"


@pytest.mark.asyncio
async def test_attendee_mode_only_refreshes_feed(source, timers) -> None:
    source.ticker = [sale(1, at(-30), 21)]
    orch = _build(source, timers, mode=DISPLAY_MODE_ATTENDEE)
    orch.start()

    assert {t.name for t in timers.pending()} == {FEED_REFRESH_JOB_ID}
    assert orch.scheduler.state is RotationState.STOPPED
    assert not orch.poller.running

    await timers.advance()
    assert orch.feed.summary is not None
    assert orch.feed.has_ticker
    assert [p.tx_count for p in orch.trend_series("5m")] == [1]
    assert source.since_calls == []


@pytest.mark.asyncio
async def test_feed_refresh_failure_keeps_last_good_copy(source, timers) -> None:
    source.ticker = [sale(1, at(-30), 21)]
    orch = _build(source, timers)
    orch.start()
    await timers.advance()

    source.ticker = []
    source.errors["ticker"] = TransientFetchError("502")
    await timers.advance(10)

    assert [e.sale_id for e in orch.feed.ticker] == [1]
    assert orch.feed.last_error is source.errors["ticker"]
    assert orch.feed.updated_at == at(0)


@pytest.mark.asyncio
async def test_feed_results_arriving_after_stop_are_dropped(source, timers) -> None:
    source.ticker = [sale(1, at(-30), 21)]
    source.ticker_gate = asyncio.Event()
    orch = _build(source, timers)
    orch.start()

    task = asyncio.create_task(orch.refresh_feed())
    await asyncio.sleep(0)
    orch.stop()
    source.ticker_gate.set()
    await task

    assert not orch.feed.has_ticker
    assert orch.feed.updated_at is None


@pytest.mark.asyncio
async def test_feed_failure_after_stop_is_not_recorded(source, timers) -> None:
    source.errors["ticker"] = TransientFetchError("502")
    source.ticker_gate = asyncio.Event()
    orch = _build(source, timers)
    orch.start()

    task = asyncio.create_task(orch.refresh_feed())
    await asyncio.sleep(0)
    orch.stop()
    source.ticker_gate.set()
    await task

    assert orch.feed.last_error is None


@pytest.mark.asyncio
async def test_feed_refresh_after_stop_does_not_fetch(source, timers) -> None:
    source.ticker = [sale(1, at(-30), 21)]
    orch = _build(source, timers)
    orch.start()
    orch.stop()

    await orch.refresh_feed()

    assert orch.feed.summary is None
    assert not orch.feed.has_ticker


@pytest.mark.asyncio
async def test_venue_mode_arms_every_job(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    orch.start()

    names = [t.name for t in timers.pending()]
    assert sorted(names) == sorted(
        [FEED_REFRESH_JOB_ID, SCENE_REFRESH_JOB_ID, SCENE_TIMER_JOB_ID, MILESTONE_POLL_JOB_ID]
    )


@pytest.mark.asyncio
async def test_stop_cancels_every_timer_and_clears_celebration(source, timers) -> None:
    orch = _build(source, timers)
    orch.start()
    await timers.advance()
    source.triggers.append(milestone(1, at(4)))
    await timers.advance(10)
    assert orch.celebration is not None

    orch.stop()

    assert timers.pending() == []
    assert orch.celebration is None
    assert orch.scheduler.state is RotationState.STOPPED
    await timers.advance(120)
    assert orch.current_scene_id() == "a"


@pytest.mark.asyncio
async def test_snapshot_reports_display_state(source, timers) -> None:
    source.ticker = [sale(1, at(-30), 21), sale(2, at(-20), 9)]
    orch = _build(source, timers, trend_window="5m")
    orch.start()
    await timers.advance()

    snap = orch.snapshot()

    assert snap["mode"] == "venue"
    assert snap["scene_id"] == "a"
    assert snap["scenes"] == ["a", "b"]
    assert snap["celebration"] is None
    assert snap["summary"]["total_transactions"] == 3
    assert snap["trends"] == [{"minute_start": "2026-01-01T11:59:00+00:00", "tx_count": 2, "volume": 30}]
    assert snap["milestone_watermark"] == at(0).isoformat()
    assert snap["feed_updated_at"] == at(0).isoformat()
