"""
Uevent classification.

Decides which reliability event family a parsed uevent belongs to, or
whether it is irrelevant and should be ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Union

from hwstats.config import DEFAULT_OVERHEAT_PATH
from hwstats.listener.parser import Uevent


logger = logging.getLogger(__name__)


TYPEC_MODE_KEY = "POWER_SUPPLY_TYPEC_MODE"
MIC_BREAK_KEY = "MIC_BREAK_STATUS"
MIC_DEGRADE_KEY = "MIC_DEGRADE_STATUS"

USB_AUDIO_DRIVER = "snd-usb-audio"
AUDIO_ACTIONS = frozenset({"add", "remove", "change"})

_POWER_SUPPLY_PATH = re.compile(r"/power_supply/[^/]+")
_USB_PATH = re.compile(r"/usb\d*/")


@dataclass(frozen=True)
class ConnectorCandidate:
    """USB Type-C port mode notification."""

    mode: str


@dataclass(frozen=True)
class AudioCandidate:
    """USB audio accessory add/remove/change notification."""

    action: str
    product: str


@dataclass(frozen=True)
class MicCandidate:
    """Microphone break/degrade status notification."""

    break_status: str | None = None
    degrade_status: str | None = None


@dataclass(frozen=True)
class OverheatCandidate:
    """USB port overheat mitigation notification."""

    driver: str


Candidate = Union[ConnectorCandidate, AudioCandidate, MicCandidate, OverheatCandidate]


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


class Classifier:
    """
    Maps parsed uevents onto reliability event families.

    Classification is a pure function of the uevent's device path and
    fields; it never touches listener state.
    """

    def __init__(
        self,
        audio_uevent: str,
        overheat_path: str = DEFAULT_OVERHEAT_PATH,
    ) -> None:
        """
        Initialize the classifier.

        Args:
            audio_uevent: Device path of the audio driver's mic status uevents
            overheat_path: Sysfs root of the overheat mitigation driver
        """
        self.audio_uevent = _normalize(audio_uevent)
        self.overheat_path = _normalize(overheat_path)
        # Uevent DEVPATHs are relative to /sys
        if self.overheat_path.startswith("/sys/"):
            self.overheat_devpath = self.overheat_path[len("/sys"):]
        else:
            self.overheat_devpath = self.overheat_path

    def classify(self, uevent: Uevent) -> Candidate | None:
        """
        Classify a uevent.

        Args:
            uevent: Parsed uevent

        Returns:
            The matching candidate, or None if the uevent is ignored.
        """
        devpath = uevent.devpath
        if not devpath or not uevent.fields:
            logger.debug("Ignoring uevent without fields: %r", uevent.header)
            return None

        candidate = (
            self._match_overheat(devpath, uevent)
            or self._match_connector(devpath, uevent)
            or self._match_audio(devpath, uevent)
            or self._match_mic(devpath, uevent)
        )
        if candidate is None:
            logger.debug("Ignoring uevent for %s", devpath)
        return candidate

    def _match_overheat(self, devpath: str, uevent: Uevent) -> OverheatCandidate | None:
        if _normalize(devpath) != self.overheat_devpath:
            return None
        driver = uevent.get("DRIVER")
        if driver is None:
            return None
        return OverheatCandidate(driver=driver)

    def _match_connector(self, devpath: str, uevent: Uevent) -> ConnectorCandidate | None:
        if not _POWER_SUPPLY_PATH.search(devpath):
            return None
        mode = uevent.get(TYPEC_MODE_KEY)
        if mode is None:
            return None
        return ConnectorCandidate(mode=mode)

    def _match_audio(self, devpath: str, uevent: Uevent) -> AudioCandidate | None:
        if not _USB_PATH.search(devpath + "/"):
            return None
        if uevent.get("DRIVER") != USB_AUDIO_DRIVER:
            return None
        product = uevent.get("PRODUCT")
        action = uevent.action
        if product is None or action not in AUDIO_ACTIONS:
            return None
        return AudioCandidate(action=action, product=product)

    def _match_mic(self, devpath: str, uevent: Uevent) -> MicCandidate | None:
        if _normalize(devpath) != self.audio_uevent:
            return None
        break_status = uevent.get(MIC_BREAK_KEY)
        degrade_status = uevent.get(MIC_DEGRADE_KEY)
        if break_status is None and degrade_status is None:
            return None
        return MicCandidate(break_status=break_status, degrade_status=degrade_status)
