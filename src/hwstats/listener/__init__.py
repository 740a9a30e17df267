"""
Uevent listener.

Parses kernel uevents, classifies them into reliability event families,
tracks per-family state and hands derived records to the reporter.
"""

from hwstats.listener.classifier import (
    AudioCandidate,
    Classifier,
    ConnectorCandidate,
    MicCandidate,
    OverheatCandidate,
)
from hwstats.listener.loop import UeventListener, create_listener
from hwstats.listener.parser import DecodeError, Uevent, parse_uevent
from hwstats.listener.state import (
    AudioAccessoryState,
    ConnectorState,
    StateTracker,
    audio_transition,
    connector_transition,
    decode_mic_status,
)
from hwstats.listener.transport import (
    BufferEventSource,
    EventSource,
    TransportError,
    UdevEventSource,
    read_capture,
)

__all__ = [
    # Parsing
    "DecodeError",
    "Uevent",
    "parse_uevent",
    # Classification
    "AudioCandidate",
    "Classifier",
    "ConnectorCandidate",
    "MicCandidate",
    "OverheatCandidate",
    # State
    "AudioAccessoryState",
    "ConnectorState",
    "StateTracker",
    "audio_transition",
    "connector_transition",
    "decode_mic_status",
    # Transport
    "BufferEventSource",
    "EventSource",
    "TransportError",
    "UdevEventSource",
    "read_capture",
    # Loop
    "UeventListener",
    "create_listener",
]
