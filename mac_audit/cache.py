# mac_audit/cache.py
# Acquisition cache: every external data source is queried at most once,
# validated against a marker, and falls back at most once to a narrower query.

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import FIREWALL_TOOL
from .parsers import section
from .utils import run_cmd

log = logging.getLogger(__name__)

OK = "ok"
FALLBACK = "fallback"
DEGRADED = "degraded"
ABSENT = "absent"


@dataclass(frozen=True)
class Source:
    name: str
    marker: str
    command: Tuple[str, ...] = ()
    group: Optional[str] = None
    header: Optional[str] = None
    fallback: Optional[Tuple[str, ...]] = None
    timeout: int = 25

    def valid(self, text):
        return bool(text) and re.search(self.marker, text, re.MULTILINE) is not None


def _profiler(*types):
    return ("system_profiler",) + types


# Combined system_profiler calls; each pays the profiler start-up cost once.
GROUPS = {
    "profile": _profiler("SPHardwareDataType", "SPPowerDataType", "SPDisplaysDataType"),
    "connectivity": _profiler("SPUSBDataType", "SPThunderboltDataType",
                              "SPBluetoothDataType", "SPAirPortDataType"),
}

SOURCES = {s.name: s for s in (
    Source("hardware", r"Serial Number", group="profile", header=r"Hardware",
           fallback=_profiler("SPHardwareDataType")),
    Source("power", r"Power|Battery", group="profile", header=r"Power",
           fallback=_profiler("SPPowerDataType")),
    Source("displays", r"(?i)Chipset|Metal|VRAM|Display", group="profile",
           header=r"Graphics/Displays", fallback=_profiler("SPDisplaysDataType")),
    Source("usb", r"USB", group="connectivity", header=r"USB",
           fallback=_profiler("SPUSBDataType")),
    Source("thunderbolt", r"Thunderbolt", group="connectivity",
           header=r"Thunderbolt(/USB4)?", fallback=_profiler("SPThunderboltDataType")),
    Source("bluetooth", r"Bluetooth", group="connectivity", header=r"Bluetooth",
           fallback=_profiler("SPBluetoothDataType")),
    Source("wifi", r"Wi-Fi|AirPort", group="connectivity", header=r"Wi-Fi|AirPort",
           fallback=_profiler("SPAirPortDataType")),
    Source("memory", r"Memory", _profiler("SPMemoryDataType")),
    Source("camera", r"Camera", _profiler("SPCameraDataType")),
    Source("audio", r"Audio", _profiler("SPAudioDataType")),
    Source("ibridge", r"Model Name", _profiler("SPiBridgeDataType")),
    Source("ioreg", r"IOPlatformExpertDevice|\+-o", ("ioreg", "-l", "-w0"),
           fallback=("ioreg", "-c", "IOPlatformExpertDevice", "-d", "2", "-w0"),
           timeout=60),
    Source("battery_registry", r"AppleSmartBattery", ("ioreg", "-rc", "AppleSmartBattery")),
    Source("enrollment", r"Enrolled via DEP|MDM enrollment",
           ("profiles", "status", "-type", "enrollment")),
    Source("profiles", r"(?i)profile", ("profiles", "list")),
    Source("sip", r"System Integrity Protection", ("csrutil", "status")),
    Source("filevault", r"FileVault", ("fdesetup", "status")),
    Source("gatekeeper", r"assessments", ("spctl", "--status")),
    Source("firewall", r"(?i)firewall", (FIREWALL_TOOL, "--getglobalstate")),
    Source("nvram", r"^\S+\t", ("nvram", "-p")),
    Source("boot_policy", r"(?i)security mode", ("bputil", "-d")),
    Source("disk", r"SMART Status", ("diskutil", "info", "/"),
           fallback=("diskutil", "info", "disk0")),
    Source("hardware_ports", r"Hardware Port", ("networksetup", "-listallhardwareports")),
    Source("os_version", r"\d", ("sw_vers", "-productVersion")),
    Source("os_build", r"\d", ("sw_vers", "-buildVersion")),
)}

# Warmed before the first phase runs.
PREFETCH = (
    "hardware", "power", "displays", "ioreg", "memory", "camera", "audio",
    "usb", "thunderbolt", "bluetooth", "wifi",
)


class AcquisitionCache:
    """
    get(name) -> text. The first call queries; later calls are memoized.
    A slot that stays empty after its fallback is permanently absent and
    reads back as "".
    """

    def __init__(self, runner=run_cmd, sources=None, groups=None):
        self.runner = runner
        self.sources = SOURCES if sources is None else sources
        self.groups = GROUPS if groups is None else groups
        self._entries = {}
        self._status = {}
        self._group_output = {}
        self.queries = 0

    def _query(self, cmd, timeout=25):
        self.queries += 1
        r = self.runner(list(cmd), timeout=timeout)
        log.debug("query %s -> rc=%s, %d chars", r.get("cmd"), r.get("returncode"),
                  len(r.get("stdout") or ""))
        return (r.get("stdout") or "").strip()

    def _group(self, group):
        if group not in self._group_output:
            self._group_output[group] = self._query(self.groups[group], timeout=60)
        return self._group_output[group]

    def get(self, name):
        if name in self._entries:
            return self._entries[name]

        src = self.sources[name]
        if src.group:
            text = section(self._group(src.group), src.header)
        else:
            text = self._query(src.command, src.timeout)

        status = OK
        if not src.valid(text):
            alt = self._query(src.fallback, src.timeout) if src.fallback else ""
            if src.valid(alt):
                text, status = alt, FALLBACK
            elif alt or text:
                text, status = alt or text, DEGRADED
            else:
                text, status = "", ABSENT
            log.debug("source %s failed validation, kept %s result", name, status)

        self._entries[name] = text
        self._status[name] = status
        return text

    def status(self, name):
        return self._status.get(name)

    def available(self, name):
        return bool(self.get(name))

    def prefetch(self, names=PREFETCH, progress=None):
        for name in names:
            if progress:
                progress(name)
            self.get(name)
        return {name: self._status[name] for name in names}
