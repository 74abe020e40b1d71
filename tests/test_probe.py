"""Tests for prerequisite checks and identity detection."""

from __future__ import annotations

from pathlib import Path

import pytest

from mac_audit.cache import AcquisitionCache
from mac_audit.config import Options
from mac_audit.errors import PrerequisiteError
from mac_audit.ledger import Ledger, Severity
from mac_audit.probe import CapabilityProbe, detect_capabilities, detect_identity

from .conftest import SERIAL, FakeRunner, ScriptedConsole, clean_mac_outputs


def make_probe(outputs, host, env, options=None, machine="arm64", which=None):
    runner = FakeRunner(outputs)
    ledger = Ledger(echo=None)
    probe = CapabilityProbe(
        AcquisitionCache(runner=runner), ledger, ScriptedConsole(), options or Options(),
        runner=runner,
        which=which or (lambda tool: f"/usr/bin/{tool}"),
        machine=lambda: machine,
        host=host,
        env=env,
    )
    return probe, ledger


def test_probe_success(host, tmp_path: Path) -> None:
    """A supported Mac passes and the report goes to the configured directory."""
    probe, ledger = make_probe(clean_mac_outputs(), host,
                               {"MAC_AUDIT_REPORT_DIR": str(tmp_path)})
    result = probe.run()

    assert result.arch == "arm64"
    assert result.os_version == "14.5"
    assert result.online
    assert result.report_path == str(tmp_path)
    assert "Rosetta 2: Installed (Intel app compatibility)" in ledger.messages(Severity.INFO)
    assert ledger.count(Severity.FAIL) == 0


def test_probe_not_a_mac(host, tmp_path: Path) -> None:
    """No macOS version aborts with a hint."""
    probe, ledger = make_probe({}, host, {"MAC_AUDIT_REPORT_DIR": str(tmp_path)})
    with pytest.raises(PrerequisiteError) as exc:
        probe.run()
    assert "is this a Mac" in exc.value.message
    assert exc.value.hint
    assert ledger.count(Severity.FAIL) == 1


def test_probe_old_macos(host, tmp_path: Path) -> None:
    """Versions below the minimum abort."""
    outputs = clean_mac_outputs()
    outputs["sw_vers -productVersion"] = "10.14.6"
    probe, _ = make_probe(outputs, host, {"MAC_AUDIT_REPORT_DIR": str(tmp_path)})
    with pytest.raises(PrerequisiteError, match="below minimum"):
        probe.run()


def test_probe_missing_tools(host, tmp_path: Path) -> None:
    """Every missing tool is named in the abort message."""
    probe, _ = make_probe(
        clean_mac_outputs(), host, {"MAC_AUDIT_REPORT_DIR": str(tmp_path)},
        which=lambda tool: None if tool in ("ioreg", "nvram") else f"/usr/bin/{tool}",
    )
    with pytest.raises(PrerequisiteError, match="ioreg nvram"):
        probe.run()


def test_probe_no_profile_access(host, tmp_path: Path) -> None:
    """Unreadable system profile data aborts with a Full Disk Access hint."""
    outputs = clean_mac_outputs()
    del outputs["system_profiler SPHardwareDataType SPPowerDataType SPDisplaysDataType"]
    probe, _ = make_probe(outputs, host, {"MAC_AUDIT_REPORT_DIR": str(tmp_path)})
    with pytest.raises(PrerequisiteError) as exc:
        probe.run()
    assert "Full Disk Access" in exc.value.hint


def test_probe_offline_and_intel(host, tmp_path: Path) -> None:
    """Offline is informational; Intel hosts are still supported."""
    outputs = clean_mac_outputs()
    del outputs["curl -s --max-time 3 --head https://www.apple.com/library/test/success.html"]
    probe, ledger = make_probe(outputs, host, {"MAC_AUDIT_REPORT_DIR": str(tmp_path)},
                               machine="x86_64")
    result = probe.run()
    assert not result.online
    assert "Intel Mac detected (x86_64)" in ledger.messages(Severity.INFO)


def test_probe_unwritable_report_dir(host, tmp_path: Path) -> None:
    """A missing report directory disables the report with a warning."""
    missing = tmp_path / "nope"
    probe, ledger = make_probe(clean_mac_outputs(), host, {"MAC_AUDIT_REPORT_DIR": str(missing)})
    result = probe.run()
    assert result.report_path == ""
    assert any("report will be skipped" in m for m in ledger.messages(Severity.WARN))


def test_probe_no_report_option(host, tmp_path: Path) -> None:
    """--no-report leaves the report path empty without a warning."""
    probe, ledger = make_probe(clean_mac_outputs(), host,
                               {"MAC_AUDIT_REPORT_DIR": str(tmp_path)},
                               options=Options(no_report=True))
    assert probe.run().report_path == ""
    assert ledger.count(Severity.WARN) == 0


def test_detect_identity_and_capabilities() -> None:
    """Identity fields and form-factor flags come from the cached profile."""
    cache = AcquisitionCache(runner=FakeRunner(clean_mac_outputs()))
    identity = detect_identity(cache, "14.5")
    caps = detect_capabilities(identity, cache, "arm64")

    assert identity.serial == SERIAL
    assert identity.model == "MacBook Pro"
    assert identity.model_id == "Mac14,7"
    assert identity.chip == "Apple M2"
    assert caps.apple_silicon
    assert caps.device_type == "laptop"
    assert caps.has_battery
    assert caps.has_touch_id
    assert not caps.has_touch_bar


def test_detect_capabilities_desktop() -> None:
    """A Mac mini has no display, camera or keyboard of its own."""
    outputs = clean_mac_outputs()
    key = "system_profiler SPHardwareDataType SPPowerDataType SPDisplaysDataType"
    outputs[key] = outputs[key].replace("MacBook Pro", "Mac mini")
    cache = AcquisitionCache(runner=FakeRunner(outputs))
    caps = detect_capabilities(detect_identity(cache), cache, "arm64")

    assert caps.device_type == "desktop"
    assert not caps.has_display
    assert not caps.has_camera
    assert not caps.has_keyboard
