"""Point-of-sale backend client: sends GET requests and validates responses into wire types."""
import logging
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from venue_display.core.errors import SourceResponseError, TransientFetchError
from venue_display.services.source.config import SourceConfig
from venue_display.services.source.types import MilestoneEvent, SceneRecord, Summary, TickerEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SUMMARY = TypeAdapter(Summary)
_TICKER = TypeAdapter(list[TickerEntry])
_TRIGGERS = TypeAdapter(list[MilestoneEvent])
_SCENES = TypeAdapter(list[SceneRecord])


def format_since(since: datetime) -> str:
    """RFC 3339 in UTC with a Z suffix, the format /v1/milestones/triggers parses."""
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _is_transient_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 429


class EventSourceClient:
    """Async client for /v1/summary, /v1/ticker, /v1/milestones/triggers and /v1/scenes."""

    def __init__(
        self,
        config: SourceConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or SourceConfig()
        self._transport = transport

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if not self._config.is_configured():
            raise SourceResponseError("Event source not configured. Set API_BASE_URL in .env.")
        url = f"{self._config.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds, transport=self._transport) as c:
                r = await c.get(url, params=params, headers=self._config.headers())
        except httpx.HTTPError as e:
            raise TransientFetchError(f"GET {path} failed: {e}") from e
        if not r.is_success:
            detail = r.text[:200] if r.text else ""
            if _is_transient_status(r.status_code):
                raise TransientFetchError(f"GET {path} returned {r.status_code} {detail}".rstrip())
            raise SourceResponseError(f"GET {path} returned {r.status_code} {detail}".rstrip())
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise SourceResponseError(f"GET {path} returned invalid JSON") from e

    def _validate(self, adapter: TypeAdapter[T], data: Any, path: str) -> T:
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            logger.debug("Unexpected payload from %s: %s", path, e)
            raise SourceResponseError(f"GET {path} returned an unexpected payload") from e

    async def fetch_summary(self) -> Summary:
        data = await self._get("/v1/summary")
        return self._validate(_SUMMARY, data or {}, "/v1/summary")

    async def fetch_recent_events(self, limit: int) -> list[TickerEntry]:
        data = await self._get("/v1/ticker", {"limit": limit})
        # Upstream encodes an empty slice as null
        return self._validate(_TICKER, data or [], "/v1/ticker")

    async def fetch_milestone_triggers(self, since: datetime) -> list[MilestoneEvent]:
        data = await self._get("/v1/milestones/triggers", {"since": format_since(since)})
        return self._validate(_TRIGGERS, data or [], "/v1/milestones/triggers")

    async def fetch_scene_configuration(self) -> list[SceneRecord]:
        data = await self._get("/v1/scenes")
        return self._validate(_SCENES, data or [], "/v1/scenes")
