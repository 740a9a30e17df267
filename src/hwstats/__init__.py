"""
hwstats - Hardware reliability telemetry listener.

Consumes kernel uevents about USB port connectivity, USB audio accessories,
microphone health and USB port overheat mitigation, and forwards structured
reliability events to a statistics-collection service.
"""

__version__ = "0.1.0"
__author__ = "hwstats Contributors"

from hwstats.config import HwstatsConfig, load_config

__all__ = ["HwstatsConfig", "load_config", "__version__"]
