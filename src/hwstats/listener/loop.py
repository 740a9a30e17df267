"""
Uevent listener loop.

Pulls one raw buffer at a time from the transport and runs it through
parse -> classify -> state update -> report. All processing happens on the
calling thread; embedding hosts must serialize access to the listener.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from hwstats.config import DEFAULT_OVERHEAT_PATH, UEVENT_MSG_LEN, HwstatsConfig
from hwstats.listener.classifier import (
    AudioCandidate,
    Candidate,
    Classifier,
    ConnectorCandidate,
    MicCandidate,
    OverheatCandidate,
)
from hwstats.listener.overheat import read_overheat_event
from hwstats.listener.parser import DecodeError, Uevent, parse_uevent
from hwstats.listener.state import (
    AudioAccessoryState,
    Clock,
    ConnectorState,
    StateTracker,
    decode_mic_status,
)
from hwstats.listener.transport import EventSource
from hwstats.stats.records import TelemetryRecord
from hwstats.stats.reporter import EventReporter
from hwstats.stats.service import StatsService


logger = logging.getLogger(__name__)


class UeventListener:
    """
    Listens for uevents and reports reliability events.

    Process one message at a time with process_uevent(), or run
    listen_forever() on a dedicated thread.
    """

    def __init__(
        self,
        source: EventSource,
        stats: StatsService,
        audio_uevent: str,
        overheat_path: str = DEFAULT_OVERHEAT_PATH,
        *,
        clock: Clock = time.monotonic,
        mic_count: int = 2,
        max_message_len: int = UEVENT_MSG_LEN,
    ) -> None:
        """
        Initialize the listener.

        Args:
            source: Transport supplying raw uevent buffers
            stats: Stats-collection service
            audio_uevent: Device path of mic status uevents
            overheat_path: Sysfs root of the overheat mitigation driver
            clock: Monotonic clock in seconds, used for durations
            mic_count: Number of microphones encoded in mic status masks
            max_message_len: Buffers this long or longer are rejected
        """
        self.source = source
        self.overheat_path = overheat_path
        self.mic_count = mic_count
        self.max_message_len = max_message_len

        self.classifier = Classifier(audio_uevent, overheat_path)
        self.tracker = StateTracker(clock)
        self.reporter = EventReporter(stats)

        self._processed = 0
        self._rejected = 0
        self._ignored = 0

    @property
    def connector_state(self) -> ConnectorState:
        """Snapshot of USB port connectivity."""
        return self.tracker.connector_state

    @property
    def audio_state(self) -> AudioAccessoryState:
        """Snapshot of the attached USB audio accessory."""
        return self.tracker.audio_state

    def process_uevent(self) -> bool:
        """
        Receive and process a single uevent.

        Returns:
            True if the uevent was processed, False if it was rejected.

        Raises:
            TransportError: If the uevent channel failed.
        """
        return self.handle_buffer(self.source.receive())

    def listen_forever(self) -> None:
        """
        Process uevents until the transport fails.

        Raises:
            TransportError: Always, when the channel closes.
        """
        logger.info("Listening for reliability uevents")
        while True:
            self.process_uevent()

    def handle_buffer(self, buffer: bytes) -> bool:
        """
        Run one raw buffer through the pipeline.

        Args:
            buffer: Raw uevent message

        Returns:
            True if processed (including ignored uevents), False if the
            buffer was malformed or a matched uevent could not be decoded.
        """
        if not buffer:
            logger.debug("Empty uevent buffer")
            self._rejected += 1
            return False
        if len(buffer) >= self.max_message_len:
            logger.warning(
                "Dropping oversized uevent (%d bytes, limit %d)",
                len(buffer), self.max_message_len,
            )
            self._rejected += 1
            return False

        uevent = parse_uevent(buffer)
        candidate = self.classifier.classify(uevent)
        if candidate is None:
            self._ignored += 1
            return True

        try:
            records = self._apply(candidate, uevent)
        except DecodeError as e:
            logger.warning(
                "Could not decode %s uevent from %s: %s",
                type(candidate).__name__, uevent.devpath, e,
            )
            self._rejected += 1
            return False

        for record in records:
            self.reporter.report(record)
        self._processed += 1
        return True

    def _apply(self, candidate: Candidate, uevent: Uevent) -> list[TelemetryRecord]:
        """Update state for a candidate and return the records to report."""
        if isinstance(candidate, ConnectorCandidate):
            record = self.tracker.on_connector_mode(candidate.mode)
            return [record] if record is not None else []

        if isinstance(candidate, AudioCandidate):
            record = self.tracker.on_audio(candidate.action, candidate.product)
            return [record] if record is not None else []

        if isinstance(candidate, MicCandidate):
            # Decode both masks before reporting anything
            records: list[TelemetryRecord] = []
            if candidate.break_status is not None:
                records.extend(
                    decode_mic_status(candidate.break_status, True, self.mic_count)
                )
            if candidate.degrade_status is not None:
                records.extend(
                    decode_mic_status(candidate.degrade_status, False, self.mic_count)
                )
            return records

        if isinstance(candidate, OverheatCandidate):
            logger.info("USB port overheat reported by %s", candidate.driver)
            return [read_overheat_event(self.overheat_path, uevent)]

        raise TypeError(f"Unknown candidate: {candidate!r}")

    def get_statistics(self) -> dict[str, Any]:
        """Get listener statistics."""
        return {
            "processed": self._processed,
            "rejected": self._rejected,
            "ignored": self._ignored,
            **self.reporter.get_statistics(),
            "usb_attached": self.connector_state.attached,
            "usb_audio_product": self.audio_state.attached_product,
        }


def create_listener(
    config: HwstatsConfig,
    source: EventSource,
    stats: StatsService,
    clock: Clock = time.monotonic,
) -> UeventListener:
    """
    Create a listener from configuration.

    Args:
        config: Loaded configuration
        source: Transport supplying raw uevent buffers
        stats: Stats-collection service
        clock: Monotonic clock in seconds

    Returns:
        Configured UeventListener
    """
    return UeventListener(
        source,
        stats,
        config.listener.audio_uevent,
        config.listener.overheat_path,
        clock=clock,
        mic_count=config.listener.mic_count,
        max_message_len=config.listener.max_message_len,
    )
