"""
Telemetry records.

Structured reliability events produced by the listener and handed to the
stats-collection service. Records are immutable and short-lived.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Union


@dataclass(frozen=True)
class UsbConnectorEvent:
    """USB port connect or disconnect."""

    kind: ClassVar[str] = "usb_connector"

    connected: bool
    mode: str
    duration_millis: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, **asdict(self)}


@dataclass(frozen=True)
class UsbAudioEvent:
    """USB audio accessory attach or detach."""

    kind: ClassVar[str] = "usb_audio"

    connected: bool
    product: str
    vid: int | None = None
    pid: int | None = None
    duration_millis: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, **asdict(self)}


@dataclass(frozen=True)
class MicBrokenOrDegradedEvent:
    """A microphone reported broken or degraded by the audio driver."""

    kind: ClassVar[str] = "mic_broken_or_degraded"

    mic: int
    is_broken: bool

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, **asdict(self)}


@dataclass(frozen=True)
class UsbOverheatEvent:
    """
    USB port overheat mitigation trip.

    Temperatures are in tenths of a degree Celsius; times are as exposed
    by the mitigation driver.
    """

    kind: ClassVar[str] = "usb_overheat"

    plug_temperature_deci_c: int = 0
    max_temperature_deci_c: int = 0
    time_to_overheat: int = 0
    time_to_hysteresis: int = 0
    time_to_inactive: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, **asdict(self)}


TelemetryRecord = Union[
    UsbConnectorEvent,
    UsbAudioEvent,
    MicBrokenOrDegradedEvent,
    UsbOverheatEvent,
]
