"""
Per-family listener state.

USB connector and USB audio accessory tracking are modelled as explicit
state values plus pure transition functions returning the new state and
the record to report, if any. Microphone status is stateless and decoded
per message. StateTracker owns the live state for the listener.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable

from hwstats.listener.parser import DecodeError
from hwstats.stats.records import (
    MicBrokenOrDegradedEvent,
    UsbAudioEvent,
    UsbConnectorEvent,
)


logger = logging.getLogger(__name__)


# POWER_SUPPLY_TYPEC_MODE value reported when the port is empty
TYPEC_MODE_DETACHED = "Nothing attached"

# 16-bit USB vendor/product ID in PRODUCT=vid/pid/bcd
_USB_ID = re.compile(r"[0-9a-fA-F]{1,4}")

Clock = Callable[[], float]


def _elapsed_millis(start: float | None, now: float) -> int:
    if start is None:
        return 0
    return max(0, int(round((now - start) * 1000)))


# ---------------------------------------------------------------------------
# USB connector
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectorState:
    """USB port connectivity. attach_time is only set while attached."""

    attached: bool = False
    attach_time: float | None = None


DETACHED = ConnectorState()


def connector_transition(
    state: ConnectorState,
    mode: str,
    now: float,
) -> tuple[ConnectorState, UsbConnectorEvent | None]:
    """
    Apply a POWER_SUPPLY_TYPEC_MODE notification.

    Args:
        state: Current connector state
        mode: Reported Type-C mode
        now: Current clock reading in seconds

    Returns:
        Tuple of (new state, record to report or None).

    Raises:
        DecodeError: If the mode is empty.
    """
    mode = mode.strip()
    if not mode:
        raise DecodeError("empty POWER_SUPPLY_TYPEC_MODE")

    if mode == TYPEC_MODE_DETACHED:
        if not state.attached:
            return state, None
        duration = _elapsed_millis(state.attach_time, now)
        return DETACHED, UsbConnectorEvent(
            connected=False, mode=mode, duration_millis=duration
        )

    if state.attached:
        return state, None
    return ConnectorState(attached=True, attach_time=now), UsbConnectorEvent(
        connected=True, mode=mode
    )


# ---------------------------------------------------------------------------
# USB audio accessory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AudioAccessoryState:
    """Currently attached USB audio accessory, if any."""

    attached_product: str | None = None
    attach_time: float | None = None

    @property
    def attached(self) -> bool:
        return self.attached_product is not None


NO_DEVICE = AudioAccessoryState()


def parse_product(product: str) -> tuple[int | None, int | None]:
    """
    Extract vendor and product IDs from a PRODUCT=vid/pid/bcd value.

    Returns:
        (vid, pid), each None unless it is 1-4 hexadecimal digits.
    """
    parts = product.split("/")
    ids: list[int | None] = [
        int(part, 16) if _USB_ID.fullmatch(part) else None for part in parts[:2]
    ]
    while len(ids) < 2:
        ids.append(None)
    return ids[0], ids[1]


def audio_transition(
    state: AudioAccessoryState,
    action: str,
    product: str,
    now: float,
) -> tuple[AudioAccessoryState, UsbAudioEvent | None]:
    """
    Apply a USB audio driver add/remove/change notification.

    A remove that does not match the tracked product means an add was
    missed; no duration is reported but the state still resets.

    Raises:
        DecodeError: If the product is empty.
    """
    product = product.strip()
    if not product:
        raise DecodeError("empty PRODUCT")

    vid, pid = parse_product(product)

    if action == "add":
        new_state = AudioAccessoryState(attached_product=product, attach_time=now)
        return new_state, UsbAudioEvent(connected=True, product=product, vid=vid, pid=pid)

    if action == "remove":
        if state.attached_product != product:
            logger.warning(
                "USB audio remove for %s, expected %s; skipping duration",
                product, state.attached_product,
            )
            return NO_DEVICE, None
        duration = _elapsed_millis(state.attach_time, now)
        return NO_DEVICE, UsbAudioEvent(
            connected=False,
            product=product,
            vid=vid,
            pid=pid,
            duration_millis=duration,
        )

    logger.debug("USB audio %s for %s", action, product)
    return state, None


# ---------------------------------------------------------------------------
# Microphone status
# ---------------------------------------------------------------------------


def decode_mic_status(
    status: str,
    is_broken: bool,
    mic_count: int = 2,
) -> list[MicBrokenOrDegradedEvent]:
    """
    Decode a MIC_BREAK_STATUS / MIC_DEGRADE_STATUS bitmask.

    Bit n set means microphone n is affected. Zero means all healthy.

    Raises:
        DecodeError: If the value is not an integer bitmask of known mics.
    """
    try:
        mask = int(status.strip())
    except ValueError:
        raise DecodeError(f"invalid mic status {status!r}") from None

    if mask < 0 or mask >= (1 << mic_count):
        raise DecodeError(f"mic status {mask} out of range for {mic_count} mics")

    return [
        MicBrokenOrDegradedEvent(mic=mic, is_broken=is_broken)
        for mic in range(mic_count)
        if mask & (1 << mic)
    ]


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------


class StateTracker:
    """
    Process-lifetime connector and audio accessory state.

    Only the listener's dispatch path mutates state; readers get
    immutable snapshots.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        """
        Initialize the tracker.

        Args:
            clock: Monotonic clock returning seconds
        """
        self._clock = clock
        self._connector = DETACHED
        self._audio = NO_DEVICE

    @property
    def connector_state(self) -> ConnectorState:
        return self._connector

    @property
    def audio_state(self) -> AudioAccessoryState:
        return self._audio

    def on_connector_mode(self, mode: str) -> UsbConnectorEvent | None:
        """Update connector state from a Type-C mode notification."""
        self._connector, record = connector_transition(
            self._connector, mode, self._clock()
        )
        return record

    def on_audio(self, action: str, product: str) -> UsbAudioEvent | None:
        """Update audio accessory state from a USB audio notification."""
        self._audio, record = audio_transition(
            self._audio, action, product, self._clock()
        )
        return record
