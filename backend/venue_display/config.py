"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from venue_display.core.constants import DISPLAY_MODE_VENUE, DISPLAY_MODES

# .env next to backend/ (parent of venue_display/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_path, extra="ignore")

    # Point-of-sale backend serving /v1/summary, /v1/ticker, /v1/milestones/triggers, /v1/scenes
    api_base_url: str = "http://localhost:8080"
    request_timeout_seconds: float = 10.0

    # "venue" runs rotation + celebrations; "attendee" only refreshes the feed
    display_mode: str = DISPLAY_MODE_VENUE
    # REDUCED_MOTION=1 in .env on displays where animation should be kept short
    reduced_motion: bool = False

    milestone_poll_seconds: float = 10.0
    feed_refresh_seconds: float = 10.0
    scene_refresh_seconds: float = 60.0
    celebration_dwell_seconds: float = 6.0
    reduced_motion_dwell_seconds: float = 3.0

    trend_window: str = "all"
    ticker_limit: int = 50
    # Comma-separated scene ids this display can draw; empty keeps every enabled remote scene
    renderable_scenes: str = ""
    log_level: str = "INFO"

    @field_validator("api_base_url", mode="after")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    @field_validator("display_mode", mode="after")
    @classmethod
    def normalize_mode(cls, v: str) -> str:
        mode = (v or "").strip().lower()
        return mode if mode in DISPLAY_MODES else DISPLAY_MODE_VENUE


settings = Settings()
