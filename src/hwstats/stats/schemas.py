"""
Pydantic schemas for stats collector payloads.

Provides the validated wire form of each telemetry record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

from pydantic import BaseModel, Field

from hwstats.stats.records import (
    MicBrokenOrDegradedEvent,
    TelemetryRecord,
    UsbAudioEvent,
    UsbConnectorEvent,
    UsbOverheatEvent,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordBase(BaseModel):
    """Fields shared by every payload."""

    reported_at: datetime = Field(default_factory=_utc_now)


class UsbConnectorPayload(RecordBase):
    connected: bool
    mode: str
    duration_millis: int | None = Field(default=None, ge=0)


class UsbAudioPayload(RecordBase):
    connected: bool
    product: str = Field(..., min_length=1)
    vid: int | None = Field(default=None, ge=0, le=0xFFFF)
    pid: int | None = Field(default=None, ge=0, le=0xFFFF)
    duration_millis: int | None = Field(default=None, ge=0)


class MicBrokenOrDegradedPayload(RecordBase):
    mic: int = Field(..., ge=0)
    is_broken: bool


class UsbOverheatPayload(RecordBase):
    plug_temperature_deci_c: int = 0
    max_temperature_deci_c: int = 0
    time_to_overheat: int = 0
    time_to_hysteresis: int = 0
    time_to_inactive: int = 0


Payload = Union[
    UsbConnectorPayload,
    UsbAudioPayload,
    MicBrokenOrDegradedPayload,
    UsbOverheatPayload,
]

_PAYLOADS: dict[type, type[RecordBase]] = {
    UsbConnectorEvent: UsbConnectorPayload,
    UsbAudioEvent: UsbAudioPayload,
    MicBrokenOrDegradedEvent: MicBrokenOrDegradedPayload,
    UsbOverheatEvent: UsbOverheatPayload,
}


def to_payload(record: TelemetryRecord) -> Payload:
    """Convert a telemetry record into its wire payload."""
    data = record.to_dict()
    data.pop("kind")
    return _PAYLOADS[type(record)](**data)
