"""
Stats-collection service backends.

A StatsService offers one method per telemetry record type. Every method
returns True if the record was delivered and False otherwise; backends
never raise.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from hwstats.config import StatsConfig
from hwstats.stats.records import (
    MicBrokenOrDegradedEvent,
    TelemetryRecord,
    UsbAudioEvent,
    UsbConnectorEvent,
    UsbOverheatEvent,
)
from hwstats.stats.schemas import to_payload


logger = logging.getLogger(__name__)


class StatsService(Protocol):
    """Reporting contract of the external stats-collection service."""

    def report_usb_connector_event(self, event: UsbConnectorEvent) -> bool: ...

    def report_usb_audio_event(self, event: UsbAudioEvent) -> bool: ...

    def report_mic_broken_or_degraded(self, event: MicBrokenOrDegradedEvent) -> bool: ...

    def report_usb_overheat_event(self, event: UsbOverheatEvent) -> bool: ...

    def close(self) -> None: ...


def _payload(record: TelemetryRecord) -> dict[str, Any] | None:
    """Validate a record into its JSON payload, or None if it is invalid."""
    try:
        return to_payload(record).model_dump(mode="json")
    except ValidationError as e:
        logger.error("Invalid %s record dropped: %s", record.kind, e)
        return None


class _RecordStatsService(ABC):
    """Routes every report method through a single _send()."""

    @abstractmethod
    def _send(self, record: TelemetryRecord) -> bool:
        """Deliver one record; must not raise."""

    def close(self) -> None:
        """Release backend resources."""

    def report_usb_connector_event(self, event: UsbConnectorEvent) -> bool:
        return self._send(event)

    def report_usb_audio_event(self, event: UsbAudioEvent) -> bool:
        return self._send(event)

    def report_mic_broken_or_degraded(self, event: MicBrokenOrDegradedEvent) -> bool:
        return self._send(event)

    def report_usb_overheat_event(self, event: UsbOverheatEvent) -> bool:
        return self._send(event)


class LoggingStatsService(_RecordStatsService):
    """Writes each record to the log as a JSON line."""

    def __init__(self, logger_name: str = "hwstats.telemetry") -> None:
        self._log = logging.getLogger(logger_name)

    def _send(self, record: TelemetryRecord) -> bool:
        payload = _payload(record)
        if payload is None:
            return False
        self._log.info("%s %s", record.kind, json.dumps(payload, sort_keys=True))
        return True


class HttpStatsService(_RecordStatsService):
    """
    Posts records to an HTTP stats collector.

    Each record goes to ``{url}/{kind}`` as JSON. There is no retry; a
    failed post is logged and dropped.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            url: Collector base URL
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (optional)
        """
        self.url = url.rstrip("/")
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    def _send(self, record: TelemetryRecord) -> bool:
        payload = _payload(record)
        if payload is None:
            return False
        endpoint = f"{self.url}/{record.kind}"
        try:
            response = self._client.post(endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Stats collector rejected %s: HTTP %d",
                record.kind, e.response.status_code,
            )
            return False
        except httpx.HTTPError as e:
            logger.error("Unable to reach stats collector at %s: %s", endpoint, e)
            return False
        return True

    def close(self) -> None:
        self._client.close()


def create_stats_service(config: StatsConfig) -> StatsService:
    """
    Create the stats backend selected by configuration.

    Raises:
        ValueError: If the backend is unknown or misconfigured.
    """
    if config.backend == "log":
        return LoggingStatsService()
    if config.backend == "http":
        if not config.url:
            raise ValueError("http stats backend requires a url")
        return HttpStatsService(config.url, timeout=config.timeout)
    raise ValueError(f"Unknown stats backend: {config.backend}")
