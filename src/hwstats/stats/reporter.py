"""
Event reporter.

Forwards telemetry records to the stats service, fire-and-forget.
"""

from __future__ import annotations

import logging

from hwstats.stats.records import (
    MicBrokenOrDegradedEvent,
    TelemetryRecord,
    UsbAudioEvent,
    UsbConnectorEvent,
    UsbOverheatEvent,
)
from hwstats.stats.service import StatsService


logger = logging.getLogger(__name__)


class EventReporter:
    """
    Dispatches records to the matching StatsService method.

    Delivery failures, including exceptions escaping a backend, are logged
    and dropped.
    """

    def __init__(self, stats: StatsService) -> None:
        self.stats = stats
        self._reported = 0
        self._failed = 0

    def report(self, record: TelemetryRecord | None) -> bool:
        """
        Report a record.

        Args:
            record: Record to deliver; None is a no-op

        Returns:
            True if delivered (or nothing to deliver), False otherwise.
        """
        if record is None:
            return True

        try:
            if isinstance(record, UsbConnectorEvent):
                ok = self.stats.report_usb_connector_event(record)
            elif isinstance(record, UsbAudioEvent):
                ok = self.stats.report_usb_audio_event(record)
            elif isinstance(record, MicBrokenOrDegradedEvent):
                ok = self.stats.report_mic_broken_or_degraded(record)
            elif isinstance(record, UsbOverheatEvent):
                ok = self.stats.report_usb_overheat_event(record)
            else:
                raise TypeError(f"Unknown telemetry record: {record!r}")
        except Exception as e:
            logger.error("Error reporting %s: %s", type(record).__name__, e)
            ok = False

        if ok:
            self._reported += 1
            logger.debug("Reported %s", record)
        else:
            self._failed += 1
            logger.error("Unable to report %s to stats service", type(record).__name__)
        return ok

    def get_statistics(self) -> dict[str, int]:
        return {"reported": self._reported, "failed": self._failed}
