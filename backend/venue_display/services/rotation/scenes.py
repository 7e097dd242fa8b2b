"""Build the rotation from remote scene rows, and the built-in rotation used until they load."""
import logging
from typing import Collection, Iterable

from venue_display.core.constants import DEFAULT_SCENE_ORDER
from venue_display.services.source.types import SceneDescriptor, SceneRecord

logger = logging.getLogger(__name__)


def default_rotation() -> list[SceneDescriptor]:
    return [SceneDescriptor(id=scene_id, duration_ms=duration_ms) for scene_id, duration_ms in DEFAULT_SCENE_ORDER]


def build_rotation(
    records: Iterable[SceneRecord],
    known_ids: Collection[str] | None = None,
) -> list[SceneDescriptor]:
    """
    Enabled rows ordered by `order`. sorted() is stable, so rows sharing an order keep the
    order the backend returned them in. Duplicate ids keep their first occurrence.
    With known_ids, rows the display has no renderer for are dropped.
    """
    enabled = sorted((r for r in records if r.enabled), key=lambda r: r.order)
    seen: set[str] = set()
    out: list[SceneDescriptor] = []
    for record in enabled:
        if record.id in seen:
            continue
        if known_ids is not None and record.id not in known_ids:
            logger.debug("Dropping scene %r: no renderer", record.id)
            continue
        seen.add(record.id)
        out.append(record.to_descriptor())
    return out
