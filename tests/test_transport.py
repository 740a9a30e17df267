"""
Tests for uevent transport adapters.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from hwstats.listener.parser import parse_uevent
from hwstats.listener.transport import (
    BufferEventSource,
    TransportError,
    UdevEventSource,
    read_capture,
    render_device,
)


def fake_device(action: str | None = "change") -> MagicMock:
    device = MagicMock()
    device.action = action
    device.device_path = "/devices/soc/power_supply/usb"
    device.properties = {
        "ACTION": "change",
        "DEVPATH": "/devices/soc/power_supply/usb",
        "POWER_SUPPLY_TYPEC_MODE": "Sink attached",
    }
    return device


class TestRenderDevice:
    def test_renders_header_and_properties(self) -> None:
        uevent = parse_uevent(render_device(fake_device()))

        assert uevent.header == "change@/devices/soc/power_supply/usb"
        assert uevent.get("POWER_SUPPLY_TYPEC_MODE") == "Sink attached"

    def test_missing_action(self) -> None:
        assert render_device(fake_device(action=None)).startswith(b"change@")


class TestBufferEventSource:
    def test_replays_then_fails(self) -> None:
        source = BufferEventSource([b"a", b"b"])

        assert source.receive() == b"a"
        assert source.receive() == b"b"
        with pytest.raises(TransportError):
            source.receive()


class TestUdevEventSource:
    """Tests for UdevEventSource with pyudev mocked out."""

    @patch("pyudev.Monitor")
    @patch("pyudev.Context")
    def test_receive(self, mock_context: MagicMock, mock_monitor_cls: MagicMock) -> None:
        monitor = mock_monitor_cls.from_netlink.return_value
        monitor.poll.return_value = fake_device()

        source = UdevEventSource()
        buffer = source.receive()

        mock_monitor_cls.from_netlink.assert_called_once_with(
            mock_context.return_value, source="kernel"
        )
        monitor.start.assert_called_once()
        assert b"POWER_SUPPLY_TYPEC_MODE=Sink attached" in buffer

    @patch("pyudev.Monitor")
    @patch("pyudev.Context")
    def test_closed_monitor(self, mock_context: MagicMock, mock_monitor_cls: MagicMock) -> None:
        mock_monitor_cls.from_netlink.return_value.poll.return_value = None

        with pytest.raises(TransportError):
            UdevEventSource().receive()

    @patch("pyudev.Monitor")
    @patch("pyudev.Context")
    def test_socket_error(self, mock_context: MagicMock, mock_monitor_cls: MagicMock) -> None:
        mock_monitor_cls.from_netlink.return_value.poll.side_effect = OSError("EBADF")

        with pytest.raises(TransportError):
            UdevEventSource().receive()


class TestReadCapture:
    def test_blocks(self, temp_dir: Path) -> None:
        capture = temp_dir / "uevents.txt"
        capture.write_text(
            "# captured on a test device\n"
            "change@/devices/power_supply/usb\n"
            "POWER_SUPPLY_TYPEC_MODE=Sink attached\n"
            "\n"
            "\n"
            "add@/devices/usb1/1-1/1-1:1.0\n"
            "ACTION=add\n"
        )

        buffers = read_capture(capture)

        assert buffers == [
            b"change@/devices/power_supply/usb\nPOWER_SUPPLY_TYPEC_MODE=Sink attached",
            b"add@/devices/usb1/1-1/1-1:1.0\nACTION=add",
        ]

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_capture(temp_dir / "missing.txt")
