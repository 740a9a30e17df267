"""
Uevent message parsing.

Turns a raw kernel notification buffer into a header line plus an ordered
mapping of KEY=VALUE fields.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


# Netlink delivers NUL-separated records; captures and tests use newlines
_RECORD_SEPARATOR = re.compile(r"[\n\0]")


class DecodeError(ValueError):
    """A classified uevent is missing a usable value for a required field."""


@dataclass(frozen=True)
class Uevent:
    """A parsed uevent message."""

    header: str = ""
    fields: dict[str, str] = field(default_factory=dict)

    @property
    def devpath(self) -> str:
        """Device path from DEVPATH, else from the action@devpath header."""
        devpath = self.fields.get("DEVPATH")
        if devpath:
            return devpath
        _, sep, path = self.header.partition("@")
        return path if sep else self.header

    @property
    def action(self) -> str | None:
        return self.fields.get("ACTION")

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.fields.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.fields


def parse_uevent(buffer: bytes) -> Uevent:
    """
    Parse a raw uevent buffer.

    The first non-empty record is the header (device path, optionally in
    ``action@devpath`` form). Every following record is split at its first
    ``=``; records without one are skipped. Repeated keys keep the last value.

    Args:
        buffer: Raw message bytes as delivered by the transport

    Returns:
        Parsed Uevent. An empty buffer yields an empty header and no fields.
    """
    text = buffer.decode("utf-8", errors="replace")
    records = [record for record in _RECORD_SEPARATOR.split(text) if record]
    if not records:
        return Uevent()

    header, *rest = records
    fields: dict[str, str] = {}
    for record in rest:
        key, sep, value = record.partition("=")
        if not sep or not key:
            continue
        fields[key] = value

    return Uevent(header=header, fields=fields)
