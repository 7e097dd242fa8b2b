"""
Error taxonomy for the display engine plus the HTTP mapping used by the API routes.

Collaborator failures are typed (EventSourceError and subclasses) so pollers can skip a
cycle without catching unrelated exceptions. The remaining classes describe conditions the
engine recovers from locally; they never reach the rendering surface.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException


class DisplayError(Exception):
    """Base exception for the venue display engine."""


class EventSourceError(DisplayError):
    """The point-of-sale backend could not answer a read."""


class TransientFetchError(EventSourceError):
    """Network error, timeout, 5xx or 429. Retried on the next scheduled tick."""


class SourceResponseError(EventSourceError):
    """Non-retryable status or a payload that does not match the expected shape."""


class StaleResponseError(DisplayError):
    """A poll resolved with nothing newer than the current watermark."""


class ConfigurationEmptyError(DisplayError):
    """The scene rotation is empty; callers render a placeholder scene."""


class ShutdownRaceError(DisplayError):
    """A timer or fetch callback outlived stop(); its effect is discarded."""


# ---------------------------------------------------------------------------
# HTTP mapping: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_SERVICE_UNAVAILABLE = 503  # upstream down or slow
STATUS_INTERNAL_ERROR = 500

MSG_SOURCE_UNAVAILABLE = "Point-of-sale backend is unavailable; showing last known state."


def _is_source_error(exc: Exception) -> bool:
    return isinstance(exc, EventSourceError)


# List of (predicate, status_code, detail). First match wins; detail None means str(exc).
DISPLAY_ERROR_RULES: list[tuple[Callable[[Exception], bool], int, str | None]] = [
    (_is_source_error, STATUS_SERVICE_UNAVAILABLE, MSG_SOURCE_UNAVAILABLE),
]


def display_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an engine exception into an HTTPException.
    Uses DISPLAY_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for predicate, status_code, detail in DISPLAY_ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail or str(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
