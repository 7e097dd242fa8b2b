"""Wire types returned by the point-of-sale backend. Same shape the dashboard consumed over REST."""
from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are treated as UTC so every comparison is between aware datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class SceneDescriptor(BaseModel):
    """One entry of the rotation: scene id + how long it stays on screen."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    duration_ms: int = Field(gt=0)

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000


class SceneRecord(BaseModel):
    """Row of GET /v1/scenes (admin-managed). Rotation is built from enabled rows ordered by `order`."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str | None = None
    enabled: bool = True
    order: int = 0
    duration_ms: int = Field(gt=0, alias="duration")

    def to_descriptor(self) -> SceneDescriptor:
        return SceneDescriptor(id=self.id, duration_ms=self.duration_ms)


class MilestoneEvent(BaseModel):
    """A fired milestone trigger. Immutable; ordered by (triggered_at, id)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    milestone_id: int
    name: str
    kind: Literal["transactions", "volume"] = Field(alias="type")
    threshold: int
    triggered_at: UtcDatetime
    total_transactions: int = 0
    total_volume: int = Field(default=0, alias="total_volume_sats")

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.triggered_at, self.id)


class TickerEntry(BaseModel):
    """One sale from GET /v1/ticker; the raw stream the trend aggregator buckets."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sale_id: int
    merchant_id: str = ""
    merchant_alias: str = ""
    amount: int = Field(default=0, ge=0, alias="amount_sats")
    sale_date: UtcDatetime

    @property
    def timestamp(self) -> datetime:
        return self.sale_date


class Summary(BaseModel):
    """Totals snapshot from GET /v1/summary. Passed through to the rendering surface untouched."""

    total_transactions: int = 0
    total_volume_sats: int = 0
    average_transaction_size: float = 0.0
    active_merchants: int = 0
    total_merchants: int = 0
    unique_products: int = 0
    transactions_per_minute: float = 0.0
    volume_per_minute: float = 0.0
