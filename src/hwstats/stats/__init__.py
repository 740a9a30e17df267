"""
Reliability telemetry records and stats-collection backends.
"""

from hwstats.stats.records import (
    MicBrokenOrDegradedEvent,
    TelemetryRecord,
    UsbAudioEvent,
    UsbConnectorEvent,
    UsbOverheatEvent,
)
from hwstats.stats.reporter import EventReporter
from hwstats.stats.service import (
    HttpStatsService,
    LoggingStatsService,
    StatsService,
    create_stats_service,
)

__all__ = [
    "EventReporter",
    "HttpStatsService",
    "LoggingStatsService",
    "MicBrokenOrDegradedEvent",
    "StatsService",
    "TelemetryRecord",
    "UsbAudioEvent",
    "UsbConnectorEvent",
    "UsbOverheatEvent",
    "create_stats_service",
]
