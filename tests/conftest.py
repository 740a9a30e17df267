"""
Pytest configuration and shared fixtures for hwstats tests.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
import yaml

from hwstats.listener.loop import UeventListener
from hwstats.listener.transport import BufferEventSource
from tests.fakes import FakeClock, RecordingStats
from tests.uevents import AUDIO_UEVENT


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stats() -> RecordingStats:
    return RecordingStats()


@pytest.fixture
def overheat_root(temp_dir: Path) -> Path:
    """Fake overheat mitigation sysfs directory."""
    root = temp_dir / "overheat_mitigation"
    root.mkdir()
    (root / "plug_temp").write_text("452\n")
    (root / "max_temp").write_text("610\n")
    (root / "trip_time").write_text("3000\n")
    (root / "hysteresis_time").write_text("12000\n")
    (root / "cleared_time").write_text("60000\n")
    return root


@pytest.fixture
def listener(stats: RecordingStats, clock: FakeClock) -> UeventListener:
    """Listener with an empty source, fed through handle_buffer()."""
    return UeventListener(
        BufferEventSource([]),
        stats,
        AUDIO_UEVENT,
        clock=clock,
    )


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample configuration file."""
    config_path = temp_dir / "hwstats.yaml"
    config_data = {
        "daemon": {
            "log_level": "debug",
        },
        "listener": {
            "audio_uevent": "/devices/virtual/audio/mic",
            "mic_count": 3,
        },
        "stats": {
            "backend": "http",
            "url": "http://collector.local:9000/v1",
        },
    }
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path
