"""
Uevent transport adapters.

The listener only needs something that hands over one raw message buffer
per call. UdevEventSource reads from the kernel netlink channel through
pyudev; BufferEventSource replays buffers held in memory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Protocol


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """The uevent channel is closed or unreadable."""


class EventSource(Protocol):
    """Blocking supplier of raw uevent buffers."""

    def receive(self) -> bytes:
        """
        Block until the next uevent arrives.

        Raises:
            TransportError: If the channel can no longer be read.
        """
        ...


def render_device(device) -> bytes:
    """
    Render a pyudev device back into a uevent buffer.

    Args:
        device: pyudev.Device received from a monitor

    Returns:
        ``action@devpath`` header followed by KEY=VALUE lines.
    """
    action = device.action or "change"
    lines = [f"{action}@{device.device_path}"]
    for key, value in device.properties.items():
        lines.append(f"{key}={value}")
    return "\n".join(lines).encode("utf-8")


class UdevEventSource:
    """
    Kernel uevent source using a pyudev netlink monitor.

    Receives every subsystem; filtering is the classifier's job.
    """

    def __init__(self, source: str = "kernel") -> None:
        """
        Initialize the source.

        Args:
            source: Netlink group, "kernel" for raw uevents or "udev"
        """
        self.source = source
        self._context = None
        self._monitor = None

    def _ensure_monitor(self) -> None:
        """Initialize pyudev monitor if needed."""
        if self._monitor is None:
            import pyudev

            self._context = pyudev.Context()
            self._monitor = pyudev.Monitor.from_netlink(self._context, source=self.source)
            self._monitor.start()
            logger.info("Listening for %s uevents", self.source)

    def receive(self) -> bytes:
        try:
            self._ensure_monitor()
            device = self._monitor.poll()
        except OSError as e:
            raise TransportError(f"uevent socket failed: {e}") from e
        if device is None:
            raise TransportError("uevent monitor closed")
        return render_device(device)


class BufferEventSource:
    """Replays a fixed sequence of uevent buffers."""

    def __init__(self, buffers: Iterable[bytes]) -> None:
        self._buffers: Iterator[bytes] = iter(buffers)

    def receive(self) -> bytes:
        try:
            return next(self._buffers)
        except StopIteration:
            raise TransportError("no more uevents") from None


def read_capture(path: str | Path) -> list[bytes]:
    """
    Load uevent buffers from a text capture.

    Each uevent is a block of lines; blocks are separated by blank lines.
    Lines starting with ``#`` are comments.

    Args:
        path: Capture file path

    Returns:
        List of raw buffers in file order.
    """
    buffers: list[bytes] = []
    block: list[str] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if line.startswith("#"):
                continue
            if not line.strip():
                if block:
                    buffers.append("\n".join(block).encode("utf-8"))
                    block = []
                continue
            block.append(line)
    if block:
        buffers.append("\n".join(block).encode("utf-8"))
    return buffers
