"""Shared fakes: a scripted console, a recording command runner and a host tree."""

from __future__ import annotations

import io
import os
import time
from collections import namedtuple
from pathlib import Path

import psutil
import pytest

from mac_audit import config
from mac_audit.cache import AcquisitionCache
from mac_audit.config import Options
from mac_audit.console import Console
from mac_audit.ledger import Ledger
from mac_audit.pipeline import PhaseContext
from mac_audit.probe import detect_capabilities, detect_identity
from mac_audit.utils import HostFiles, TempArtifacts

SERIAL = "C02XK1ABCD12"

PROFILE = """Hardware:

    Hardware Overview:

      Model Name: MacBook Pro
      Model Identifier: Mac14,7
      Chip: Apple M2
      Memory: 16 GB
      System Firmware Version: 10151.1.1
      Serial Number (system): C02XK1ABCD12
      Hardware UUID: 1A2B3C4D-0000-1111-2222-333344445555
      Provisioning UDID: 00008112-001A2B3C4D5E
      Activation Lock Status: Disabled

Power:

    Battery Information:

      Model Information:
          Manufacturer: SMP
      Health Information:
          Cycle Count: 120
          Condition: Normal
          Maximum Capacity: 92%

    AC Charger Information:

      Connected: Yes

Graphics/Displays:

    Apple M2:

      Chipset Model: Apple M2
      Type: GPU
      Metal Support: Metal 3
      Displays:
        Color LCD:
          Display Type: Built-in Liquid Retina Display
          Resolution: 2560 x 1664 Retina
"""

CONNECTIVITY = """USB:

    USB 3.1 Bus:

      Host Controller Driver: AppleT8112USBXHCI

    USB 3.1 Bus:

      Host Controller Driver: AppleT8112USBXHCI

Thunderbolt/USB4:

    Thunderbolt/USB4 Bus 0:

      Vendor Name: Apple Inc.
      Firmware Version: 2.1
      Port:
        Status: No device connected

    Thunderbolt/USB4 Bus 1:

      Port:
        Status: No device connected

Bluetooth:

      Bluetooth Controller:
        State: On

Wi-Fi:

      Interfaces:
        en0:
          Supported PHY Modes: 802.11 a/b/g/n/ac/ax
"""

IOREG = """+-o Root  <class IORegistryEntry>
  +-o MacBookPro  <class IOPlatformExpertDevice>
    | "board-id" = <"Mac-1A2B3C4D5E6F">
    +-o AppleSEPKeyStore  <class AppleSEPKeyStore>
    | "FanSpeed" = 1200
    | "TemperatureSensor0" = 41
    | "TemperatureSensor1" = 42
    | "TemperatureSensor2" = 43
    | "TemperatureSensor3" = 44
    | "TemperatureSensor4" = 45
    | "TemperatureSensor5" = 46
"""

DISK = """   Device Identifier:         disk3s1s1
   Device Node:               /dev/disk3s1s1
   Part of Whole:             disk3
   Disk Size:                 494.4 GB (494384795648 Bytes) (exactly 965595304 512-Byte-Units)
   Solid State:               Yes
   SMART Status:              Verified
   APFS Container Reference:  disk3
"""

XPROTECT = config.XPROTECT_PLISTS[0]


def clean_mac_outputs() -> dict[str, str]:
    """Command line -> stdout for a healthy, consumer-owned Apple Silicon MacBook Pro."""
    return {
        "system_profiler SPHardwareDataType SPPowerDataType SPDisplaysDataType": PROFILE,
        "system_profiler SPUSBDataType SPThunderboltDataType SPBluetoothDataType "
        "SPAirPortDataType": CONNECTIVITY,
        "system_profiler SPMemoryDataType": "Memory:\n\n      Memory: 16 GB\n      Type: LPDDR5\n",
        "system_profiler SPCameraDataType": (
            "Camera:\n\n    FaceTime HD Camera:\n\n      Model ID: FaceTime HD Camera\n"
            "      Manufacturer: Apple Inc.\n"),
        "system_profiler SPAudioDataType": (
            "Audio:\n\n    Devices:\n\n        MacBook Pro Speakers:\n\n"
            "          Transport: Built-in\n          Manufacturer: Apple Inc.\n"),
        "ioreg -l -w0": IOREG,
        "ioreg -rc AppleSmartBattery": (
            '+-o AppleSmartBattery  <class AppleSmartBattery>\n    "Manufacturer" = "SMP"\n'),
        "profiles status -type enrollment": "Enrolled via DEP: No\nMDM enrollment: No\n",
        "profiles list": "There are no configuration profiles installed\n",
        "csrutil status": "System Integrity Protection status: enabled.\n",
        "fdesetup status": "FileVault is Off.\n",
        "spctl --status": "assessments enabled\n",
        f"{config.FIREWALL_TOOL} --getglobalstate": "Firewall is enabled. (State = 1)\n",
        "nvram -p": "SystemAudioVolume\t%80\nboot-args\t\n",
        "bputil -d": "Local policy:\nSecurity Mode: Full\n",
        "diskutil info /": DISK,
        "networksetup -listallhardwareports": (
            "Hardware Port: Wi-Fi\nDevice: en0\nEthernet Address: aa:bb:cc:dd:ee:ff\n\n"
            "Hardware Port: Thunderbolt Bridge\nDevice: bridge0\n"),
        "sw_vers -productVersion": "14.5\n",
        "sw_vers -buildVersion": "23F79\n",
        f"curl -s --max-time 3 --head {config.CONNECTIVITY_URL}": "HTTP/2 200\n",
        "/usr/bin/pgrep -q oahd": "",
        "networksetup -getairportnetwork en0": "Current Wi-Fi Network: HomeNet\n",
        "softwareupdate -l": "Software Update Tool\n\nFinding available software\n",
        "tmutil destinationinfo": "No destinations configured\n",
        "diskutil apfs listVolumeGroups": "Volume Group 1\n  APFS Volume Disk (Role): disk3s3 (Recovery)\n",
        f"{config.PLIST_BUDDY} -c Print :Version": "5270\n",
    }


class FakeRunner:
    """run_cmd stand-in: exact command match first, then the longest matching prefix."""

    def __init__(self, outputs: dict[str, str], stderr: dict[str, str] | None = None) -> None:
        self.outputs = dict(outputs)
        self.stderr = dict(stderr or {})
        self.calls: list[str] = []

    def _lookup(self, table: dict[str, str], line: str) -> str | None:
        if line in table:
            return table[line]
        prefixes = [k for k in table if line.startswith(k + " ")]
        return table[max(prefixes, key=len)] if prefixes else None

    def __call__(self, cmd, timeout=25):
        line = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.calls.append(line)
        out = self._lookup(self.outputs, line)
        err = self._lookup(self.stderr, line) or ""
        ok = out is not None
        return {
            "ok": ok,
            "stdout": (out or "").strip(),
            "stderr": err.strip(),
            "returncode": 0 if ok else 1,
            "cmd": line,
        }

    def count(self, prefix: str) -> int:
        return sum(1 for c in self.calls if c.startswith(prefix))


class ScriptedConsole(Console):
    """Console whose operator answers come from lists instead of a terminal."""

    def __init__(self, texts=(), keys=(), polls=()) -> None:
        super().__init__(stdin=io.StringIO(), stdout=io.StringIO())
        self.texts = list(texts)
        self.keys = list(keys)
        self.polls = list(polls)
        self.prompts: list[str] = []
        self.flushes = 0

    def flush_input(self) -> None:
        self.flushes += 1

    def ask_text(self, prompt):
        self.prompts.append(prompt)
        return self.texts.pop(0) if self.texts else ""

    def pause(self, prompt):
        self.prompts.append(prompt)

    def ask_key(self, prompt):
        self.flush_input()
        self.prompts.append(prompt)
        return self.keys.pop(0) if self.keys else ""

    def poll_key(self, timeout):
        return self.polls.pop(0) if self.polls else None

    @property
    def output(self) -> str:
        return self.stdout.getvalue()


def touch(path: Path, age_days: float = 0.0) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    stamp = time.time() - age_days * 86400
    os.utime(path, (stamp, stamp))
    return path


DiskUsage = namedtuple("DiskUsage", "total used free percent")


@pytest.fixture
def host(tmp_path: Path) -> HostFiles:
    """Host tree with XProtect definitions and a setup marker from last year."""
    root = tmp_path / "root"
    home = tmp_path / "home"
    home.mkdir(parents=True)
    files = HostFiles(root=root, home=home)
    touch(files.resolve(XPROTECT))
    touch(files.resolve(config.SETUP_DONE_FILE), age_days=400)
    return files


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(clean_mac_outputs(), stderr={"softwareupdate -l": "No new software available."})


@pytest.fixture
def quiet_host_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Deterministic disk usage, uptime, log scan and no real sounds."""
    monkeypatch.setattr(psutil, "disk_usage",
                        lambda path: DiskUsage(500 * 10**9, 200 * 10**9, 300 * 10**9, 40.0))
    monkeypatch.setattr(psutil, "boot_time", lambda: time.time() - 3 * 86400)
    monkeypatch.setattr("mac_audit.phases.stability.run_bounded", lambda *a, **kw: "")
    monkeypatch.setattr(config, "SOUND_SECONDS", 0)
    monkeypatch.setattr(config, "SPEECH_SECONDS", 0)


@pytest.fixture
def make_ctx(host: HostFiles, runner: FakeRunner, tmp_path: Path):
    """Build a PhaseContext over the fake runner and host; identity comes from the cache."""

    def build(console=None, options=None, arch="arm64", fake=None):
        fake = fake or runner
        console = console or ScriptedConsole()
        cache = AcquisitionCache(runner=fake)
        identity = detect_identity(cache, "14.5")
        caps = detect_capabilities(identity, cache, arch)
        options = options or Options(quick=True)
        ledger = Ledger(echo=console.say, verbose=options.verbose)
        return PhaseContext(
            cache=cache, caps=caps, identity=identity, ledger=ledger, console=console,
            options=options, host=host, runner=fake, launcher=lambda cmd: None,
            artifacts=TempArtifacts(directory=str(tmp_path), tag="test"),
        )

    return build
