"""
Configuration management for hwstats.

Handles loading, validation, and access to listener configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


# Default configuration paths
DEFAULT_CONFIG_PATH = Path("/etc/hwstats/hwstats.yaml")

DEFAULT_AUDIO_UEVENT = "/kernel/q6audio/q6voiceuevent"
DEFAULT_OVERHEAT_PATH = "/sys/devices/platform/soc/soc:google,overheat_mitigation"

# Largest uevent accepted from the kernel, in bytes
UEVENT_MSG_LEN = 2048


@dataclass
class DaemonConfig:
    """Daemon general settings."""

    log_level: str = "info"
    log_file: str | None = None


@dataclass
class ListenerConfig:
    """Uevent listener settings."""

    audio_uevent: str = DEFAULT_AUDIO_UEVENT
    overheat_path: str = DEFAULT_OVERHEAT_PATH
    mic_count: int = 2
    max_message_len: int = UEVENT_MSG_LEN


@dataclass
class StatsConfig:
    """Statistics-collection backend settings."""

    backend: str = "log"
    url: str | None = None
    timeout: float = 5.0

    def __post_init__(self) -> None:
        # Load collector URL from environment if not set
        if self.url is None:
            self.url = os.environ.get("HWSTATS_STATS_URL")


@dataclass
class HwstatsConfig:
    """Main configuration container."""

    daemon: DaemonConfig = field(default_factory=DaemonConfig)
    listener: ListenerConfig = field(default_factory=ListenerConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HwstatsConfig:
        """Create configuration from dictionary."""
        return cls(
            daemon=DaemonConfig(**data.get("daemon", {})),
            listener=ListenerConfig(**data.get("listener", {})),
            stats=StatsConfig(**data.get("stats", {})),
        )


def load_config(path: str | Path | None = None) -> HwstatsConfig:
    """
    Load configuration from YAML file.

    Args:
        path: Path to configuration file. If None, uses default paths.

    Returns:
        HwstatsConfig instance with loaded settings.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        yaml.YAMLError: If config file is invalid YAML.
    """
    if path is None:
        candidates = [
            DEFAULT_CONFIG_PATH,
            Path("config/hwstats.yaml"),
            Path("hwstats.yaml"),
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break

    if path is None:
        return HwstatsConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return HwstatsConfig.from_dict(data)


def validate_config(config: HwstatsConfig) -> list[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Configuration to validate.

    Returns:
        List of error messages. Empty list if valid.
    """
    errors: list[str] = []

    valid_log_levels = {"debug", "info", "warning", "error"}
    if config.daemon.log_level not in valid_log_levels:
        errors.append(f"Invalid log_level: {config.daemon.log_level}")

    if not config.listener.audio_uevent:
        errors.append("audio_uevent path must not be empty")

    if not config.listener.overheat_path.startswith("/"):
        errors.append(f"Invalid overheat_path: {config.listener.overheat_path}")

    if not (1 <= config.listener.mic_count <= 32):
        errors.append(f"Invalid mic_count: {config.listener.mic_count}")

    if config.listener.max_message_len <= 0:
        errors.append(f"Invalid max_message_len: {config.listener.max_message_len}")

    valid_backends = {"log", "http"}
    if config.stats.backend not in valid_backends:
        errors.append(f"Invalid stats backend: {config.stats.backend}")

    if config.stats.backend == "http" and not config.stats.url:
        errors.append("Stats collector URL required for the http backend")

    if config.stats.timeout <= 0:
        errors.append(f"Invalid stats timeout: {config.stats.timeout}")

    return errors
