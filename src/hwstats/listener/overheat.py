"""USB port overheat mitigation readings."""

from __future__ import annotations

import logging
from pathlib import Path

from hwstats.listener.parser import Uevent
from hwstats.stats.records import UsbOverheatEvent


logger = logging.getLogger(__name__)


# Sysfs attribute under the mitigation root -> UsbOverheatEvent field
OVERHEAT_ATTRIBUTES = {
    "plug_temp": "plug_temperature_deci_c",
    "max_temp": "max_temperature_deci_c",
    "trip_time": "time_to_overheat",
    "hysteresis_time": "time_to_hysteresis",
    "cleared_time": "time_to_inactive",
}


def read_int(path: Path) -> int | None:
    """Read a sysfs attribute holding a single integer."""
    try:
        return int(path.read_text().strip())
    except (OSError, ValueError) as e:
        logger.error("Unable to read %s: %s", path, e)
        return None


def read_overheat_event(root: str | Path, uevent: Uevent) -> UsbOverheatEvent:
    """
    Build an overheat record for a mitigation uevent.

    A value carried in the uevent itself (e.g. PLUG_TEMP=) takes precedence
    over the sysfs attribute. Unreadable values are reported as 0.

    Args:
        root: Sysfs root of the overheat mitigation driver
        uevent: The triggering uevent

    Returns:
        UsbOverheatEvent with whatever readings were available.
    """
    root = Path(root)
    values: dict[str, int] = {}
    for attribute, field_name in OVERHEAT_ATTRIBUTES.items():
        value = None
        raw = uevent.get(attribute.upper())
        if raw is not None:
            try:
                value = int(raw.strip())
            except ValueError:
                logger.warning("Bad %s in overheat uevent: %r", attribute.upper(), raw)
        if value is None:
            value = read_int(root / attribute)
        values[field_name] = value if value is not None else 0
    return UsbOverheatEvent(**values)
