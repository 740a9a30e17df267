"""
Tests for telemetry records, payload schemas and stats backends.
"""

from __future__ import annotations

import json
import logging

import httpx
import pytest
from pydantic import ValidationError

from hwstats.config import StatsConfig
from hwstats.stats.records import (
    MicBrokenOrDegradedEvent,
    UsbAudioEvent,
    UsbConnectorEvent,
    UsbOverheatEvent,
)
from hwstats.stats.reporter import EventReporter
from hwstats.stats.schemas import (
    MicBrokenOrDegradedPayload,
    UsbAudioPayload,
    to_payload,
)
from hwstats.stats.service import (
    HttpStatsService,
    LoggingStatsService,
    _RecordStatsService,
    create_stats_service,
)
from tests.fakes import RecordingStats


class TestRecords:
    def test_to_dict(self) -> None:
        record = UsbConnectorEvent(connected=False, mode="Nothing attached", duration_millis=5)
        assert record.to_dict() == {
            "kind": "usb_connector",
            "connected": False,
            "mode": "Nothing attached",
            "duration_millis": 5,
        }

    def test_overheat_defaults(self) -> None:
        assert UsbOverheatEvent().to_dict()["plug_temperature_deci_c"] == 0


class TestPayloads:
    def test_to_payload(self) -> None:
        payload = to_payload(MicBrokenOrDegradedEvent(mic=1, is_broken=True))

        assert isinstance(payload, MicBrokenOrDegradedPayload)
        assert payload.mic == 1
        assert payload.is_broken is True
        assert payload.reported_at.tzinfo is not None

    def test_rejects_negative_duration(self) -> None:
        with pytest.raises(ValidationError):
            to_payload(UsbConnectorEvent(connected=False, mode="x", duration_millis=-1))

    def test_rejects_out_of_range_vid(self) -> None:
        with pytest.raises(ValidationError):
            UsbAudioPayload(connected=True, product="1/2/3", vid=0x10000)


class TestEventReporter:
    """Tests for EventReporter dispatch."""

    @pytest.mark.parametrize(
        "record",
        [
            UsbConnectorEvent(connected=True, mode="Sink attached"),
            UsbAudioEvent(connected=True, product="1/2/3", vid=1, pid=2),
            MicBrokenOrDegradedEvent(mic=0, is_broken=False),
            UsbOverheatEvent(plug_temperature_deci_c=400),
        ],
    )
    def test_dispatch(self, record) -> None:
        stats = RecordingStats()
        reporter = EventReporter(stats)

        assert reporter.report(record) is True
        assert stats.records == [record]

    def test_none_is_noop(self) -> None:
        stats = RecordingStats()
        assert EventReporter(stats).report(None) is True
        assert stats.records == []

    def test_failure_counted(self, caplog: pytest.LogCaptureFixture) -> None:
        reporter = EventReporter(RecordingStats(succeed=False))

        with caplog.at_level(logging.ERROR):
            assert reporter.report(MicBrokenOrDegradedEvent(mic=0, is_broken=True)) is False

        assert reporter.get_statistics() == {"reported": 0, "failed": 1}
        assert "Unable to report" in caplog.text

    def test_unknown_record(self) -> None:
        reporter = EventReporter(RecordingStats())
        assert reporter.report("not a record") is False  # type: ignore[arg-type]


class TestLoggingStatsService:
    def test_logs_json(self, caplog: pytest.LogCaptureFixture) -> None:
        service = LoggingStatsService()

        with caplog.at_level(logging.INFO, logger="hwstats.telemetry"):
            assert service.report_usb_audio_event(
                UsbAudioEvent(connected=False, product="1/2/3", duration_millis=10)
            ) is True

        message = caplog.records[-1].getMessage()
        kind, _, body = message.partition(" ")
        assert kind == "usb_audio"
        assert json.loads(body)["duration_millis"] == 10

    def test_invalid_record_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        service = LoggingStatsService()
        event = UsbAudioEvent(connected=True, product="-5/1/0", vid=-5, pid=1)

        with caplog.at_level(logging.INFO):
            assert service.report_usb_audio_event(event) is False

        assert not [r for r in caplog.records if r.name == "hwstats.telemetry"]
        assert any(
            r.levelno == logging.ERROR and "Invalid usb_audio record" in r.getMessage()
            for r in caplog.records
        )


class TestHttpStatsService:
    """Tests for HttpStatsService using httpx.MockTransport."""

    def make_service(self, handler) -> HttpStatsService:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return HttpStatsService("http://collector.test/v1/", client=client)

    def test_posts_payload(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        service = self.make_service(handler)
        assert service.report_mic_broken_or_degraded(
            MicBrokenOrDegradedEvent(mic=1, is_broken=True)
        ) is True

        assert len(requests) == 1
        assert str(requests[0].url) == "http://collector.test/v1/mic_broken_or_degraded"
        body = json.loads(requests[0].content)
        assert body["mic"] == 1
        assert body["is_broken"] is True

    def test_http_error_status(self) -> None:
        service = self.make_service(lambda request: httpx.Response(503))
        assert service.report_usb_overheat_event(UsbOverheatEvent()) is False

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        service = self.make_service(handler)
        assert service.report_usb_connector_event(
            UsbConnectorEvent(connected=True, mode="Sink attached")
        ) is False

    def test_invalid_record_not_posted(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        service = self.make_service(handler)
        assert service.report_usb_audio_event(
            UsbAudioEvent(connected=True, product="1/10000/0", vid=1, pid=0x10000)
        ) is False
        assert requests == []

    def test_close_closes_client(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
        service = HttpStatsService("http://collector.test/v1", client=client)

        service.close()

        assert client.is_closed


class TestCreateStatsService:
    def test_log_backend(self) -> None:
        assert isinstance(create_stats_service(StatsConfig()), LoggingStatsService)

    def test_http_backend(self) -> None:
        service = create_stats_service(StatsConfig(backend="http", url="http://c/v1"))
        assert isinstance(service, HttpStatsService)
        assert service.url == "http://c/v1"
        service.close()

    def test_http_without_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HWSTATS_STATS_URL", raising=False)
        with pytest.raises(ValueError):
            create_stats_service(StatsConfig(backend="http"))

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            create_stats_service(StatsConfig(backend="carrier-pigeon"))


class TestRecordStatsService:
    def test_send_is_abstract(self) -> None:
        class Incomplete(_RecordStatsService):
            pass

        with pytest.raises(TypeError):
            Incomplete()  # type: ignore[abstract]

    def test_routes_to_send(self) -> None:
        class Collecting(_RecordStatsService):
            def __init__(self) -> None:
                self.sent: list[object] = []

            def _send(self, record) -> bool:
                self.sent.append(record)
                return True

        service = Collecting()
        event = MicBrokenOrDegradedEvent(mic=0, is_broken=False)

        assert service.report_mic_broken_or_degraded(event) is True
        assert service.sent == [event]
        service.close()
