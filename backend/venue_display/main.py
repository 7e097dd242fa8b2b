"""
FastAPI app entrypoint.

Runs the display orchestrator on the server's event loop (timers via APScheduler's
AsyncIOScheduler) and serves the rendering surface's reads under /display.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from venue_display.api.routes import display
from venue_display.config import settings
from venue_display.orchestrator import DisplayOrchestrator, OrchestratorOptions
from venue_display.scheduler.timers import SchedulerTimers
from venue_display.services.source import EventSourceClient

logger = logging.getLogger(__name__)


def build_orchestrator(timers: SchedulerTimers) -> DisplayOrchestrator:
    return DisplayOrchestrator(
        EventSourceClient(),
        timers,
        options=OrchestratorOptions.from_settings(settings),
        prefers_reduced_motion=lambda: settings.reduced_motion,
    )


def create_app(orchestrator: DisplayOrchestrator | None = None) -> FastAPI:
    """App factory. Pass an orchestrator (e.g. on fake timers) to skip the APScheduler wiring."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        timers: SchedulerTimers | None = None
        orch = orchestrator
        if orch is None:
            timers = SchedulerTimers()
            timers.start()
            orch = build_orchestrator(timers)
        orch.start()
        app.state.orchestrator = orch
        logger.info("Display ready; event source %s", settings.api_base_url)
        yield
        orch.stop()
        if timers is not None:
            timers.shutdown()

    app = FastAPI(title="Venue Display", version="0.1.0", lifespan=lifespan)

    # CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the deployed display frontend
    cors_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_extra = os.getenv("CORS_ORIGINS", "")
    if cors_extra:
        cors_origins.extend(o.strip() for o in cors_extra.split(",") if o.strip())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(display.router, prefix="/display", tags=["display"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(app, host="127.0.0.1", port=int(os.getenv("PORT", "8000")))
