"""Event source config. Defaults from Settings (API_BASE_URL, REQUEST_TIMEOUT_SECONDS) or EventSourceClient args."""
from venue_display.config import settings


class SourceConfig:
    """Base URL and request timeout for the point-of-sale backend."""

    __slots__ = ("base_url", "timeout_seconds")

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).strip().rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.request_timeout_seconds

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}
