# mac_audit/probe.py
# Prerequisite checks (the only place allowed to abort the run) and the
# identity / capability flags every phase reads.

import platform
import shutil
from dataclasses import dataclass

from . import config, models
from .errors import PrerequisiteError
from .parsers import contains, field, version_gte
from .utils import HostFiles, report_dir, run_cmd


@dataclass(frozen=True)
class SystemIdentity:
    serial: str = ""
    model: str = ""
    model_id: str = ""
    chip: str = ""
    memory: str = ""
    uuid: str = ""
    provisioning_udid: str = ""
    os_version: str = ""


@dataclass(frozen=True)
class Capabilities:
    arch: str = ""
    apple_silicon: bool = False
    device_type: str = "unknown"
    has_display: bool = True
    has_camera: bool = True
    has_speakers: bool = True
    has_mic: bool = True
    has_keyboard: bool = True
    has_battery: bool = False
    has_touch_bar: bool = False
    has_touch_id: bool = False


@dataclass(frozen=True)
class ProbeResult:
    arch: str
    os_version: str
    report_path: str   # "" when the report is disabled
    online: bool


class CapabilityProbe:

    def __init__(self, cache, ledger, console, options, runner=run_cmd,
                 which=shutil.which, machine=platform.machine, host=None, env=None):
        self.cache = cache
        self.ledger = ledger
        self.console = console
        self.options = options
        self.runner = runner
        self.which = which
        self.machine = machine
        self.host = host or HostFiles()
        self.env = env

    def _abort(self, message, hint=""):
        self.ledger.fail(message)
        raise PrerequisiteError(message, hint)

    def run(self):
        self.console.progress("Checking macOS version")
        version = self.cache.get("os_version").strip()
        if not version:
            self._abort("Cannot determine macOS version - is this a Mac?",
                        "This tool only works on macOS systems.")
        if not version_gte(version, config.MIN_MACOS_VERSION):
            self._abort(f"macOS {version} below minimum ({config.MIN_MACOS_VERSION})",
                        "Please update macOS or use an older release of this tool.")
        self.ledger.passed(f"macOS {version} (meets minimum {config.MIN_MACOS_VERSION})")

        arch = self.machine()
        if arch == "arm64":
            self.ledger.passed("Apple Silicon detected (arm64)")
            if self._rosetta_installed():
                self.ledger.info("Rosetta 2: Installed (Intel app compatibility)")
            else:
                self.ledger.info("Rosetta 2: Not installed (can be added when needed)")
        elif arch == "x86_64":
            self.ledger.info("Intel Mac detected (x86_64)")
        else:
            self.ledger.warn(f"Unknown architecture: {arch}")

        missing = [t for t in config.REQUIRED_TOOLS if self.which(t) is None]
        if missing:
            self._abort(f"Missing required tools: {' '.join(missing)}")
        self.ledger.passed("All required system tools available")

        self.console.progress("Verifying system data access")
        if not self.cache.get("hardware"):
            self._abort("Cannot access system profile data!",
                        "Try: Full Disk Access for Terminal in System Settings > Privacy")

        self.console.progress("Checking network connectivity")
        online = self._online()
        if online:
            self.ledger.passed("Internet: Connected (can verify warranty online)")
        else:
            self.ledger.info("Internet: Not connected (offline mode - all checks still work)")

        return ProbeResult(arch=arch, os_version=version,
                           report_path=self._report_location(), online=online)

    def _rosetta_installed(self):
        if self.runner(["/usr/bin/pgrep", "-q", "oahd"], timeout=5)["ok"]:
            return True
        return self.host.exists(config.ROSETTA_RUNTIME)

    def _online(self):
        r = self.runner(["curl", "-s", "--max-time", "3", "--head", config.CONNECTIVITY_URL],
                        timeout=10)
        return r["ok"] and " 200" in r["stdout"]

    def _report_location(self):
        if self.options.no_report:
            return ""
        directory, writable = report_dir(self.env)
        if not writable:
            self.ledger.warn(f"Cannot write to {directory} - report will be skipped")
            return ""
        self.ledger.info(f"Report will be saved to {directory}")
        return directory


def detect_identity(cache, os_version=""):
    hw = cache.get("hardware")
    chip = field(hw, "Chip:") or field(hw, "Processor Name:")
    return SystemIdentity(
        serial=field(hw, "Serial Number"),
        model=field(hw, "Model Name:"),
        model_id=field(hw, "Model Identifier:"),
        chip=chip,
        memory=field(hw, "Memory:"),
        uuid=field(hw, "Hardware UUID"),
        provisioning_udid=field(hw, "Provisioning UDID"),
        os_version=os_version,
    )


def detect_capabilities(identity, cache, arch):
    device_type, display, camera, speakers, mic, keyboard = models.form_factor(identity.model)
    return Capabilities(
        arch=arch,
        apple_silicon=arch == "arm64",
        device_type=device_type,
        has_display=display,
        has_camera=camera,
        has_speakers=speakers,
        has_mic=mic,
        has_keyboard=keyboard,
        has_battery=contains(cache.get("power"), r"Battery Information"),
        has_touch_bar=identity.model_id in models.TOUCH_BAR_MODELS,
        has_touch_id=contains(cache.get("ioreg"), r"AppleSEPKeyStore", 0),
    )
