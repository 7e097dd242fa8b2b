"""
Display API: what the rendering surface reads (scene, celebration, trends) and the one write it
makes (manual skip). The orchestrator lives on app.state; routes never mutate it otherwise.
Handlers are async so they run on the event loop alongside the timers, never in the threadpool.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from venue_display.core.errors import TransientFetchError, display_error_to_http
from venue_display.orchestrator import DisplayOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_orchestrator(request: Request) -> DisplayOrchestrator:
    return request.app.state.orchestrator


@router.get("/scene")
async def current_scene(orchestrator: DisplayOrchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    """Active scene id; placeholder=true when the rotation is empty."""
    return orchestrator.scene_state()


@router.post("/scene/skip")
async def skip_scene(orchestrator: DisplayOrchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    """Operator/manual advance. Works while a celebration has the rotation paused."""
    scene_id = orchestrator.skip()
    logger.info("Manual skip -> %r", scene_id)
    return orchestrator.scene_state()


@router.get("/celebration")
async def current_celebration(orchestrator: DisplayOrchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    celebration = orchestrator.celebration
    return {"celebration": celebration.to_dict() if celebration else None}


@router.get("/trends")
async def trends(
    orchestrator: DisplayOrchestrator = Depends(get_orchestrator),
    window: str | None = Query(None, description="5m, 30m, 60m, 2h or all"),
) -> dict[str, Any]:
    """
    Per-minute trend series from the cached ticker. 503 until the ticker has been fetched at
    least once; afterwards the last good copy is served even while the backend is down.
    """
    if not orchestrator.feed.has_ticker:
        raise display_error_to_http(orchestrator.feed.last_error or TransientFetchError("ticker not loaded yet"))
    points = orchestrator.trend_series(window)
    newest = orchestrator.feed.newest_sale_at()
    return {
        "window": window or orchestrator.options.trend_window,
        "points": [p.to_dict() for p in points],
        "newest_sale_at": newest.isoformat() if newest else None,
    }


@router.get("/snapshot")
async def snapshot(orchestrator: DisplayOrchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    return orchestrator.snapshot()
