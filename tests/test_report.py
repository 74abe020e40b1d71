"""Tests for the risk verdict, terminal summary and text report."""

from __future__ import annotations

import re
from pathlib import Path

from mac_audit.ledger import Ledger
from mac_audit.probe import SystemIdentity
from mac_audit.report import (
    Verdict,
    aggregate,
    build_report_text,
    render_summary,
    report_path,
    write_report,
)

from .conftest import ScriptedConsole

IDENTITY = SystemIdentity(serial="C02XK1ABCD12", model="MacBook Pro", model_id="Mac14,7",
                          chip="Apple M2", memory="16 GB", os_version="14.5")


def test_aggregate_bands() -> None:
    """Any fail is critical; up to two warnings is still low risk."""
    assert aggregate(1, 0) == Verdict.CRITICAL
    assert aggregate(1, 10) == Verdict.CRITICAL
    assert aggregate(0, 3) == Verdict.MODERATE
    assert aggregate(0, 2) == Verdict.LOW
    assert aggregate(0, 0) == Verdict.LOW
    assert Verdict.CRITICAL.label == "CRITICAL RISK / DO NOT BUY"


def test_render_summary_lists_issues_and_checklist() -> None:
    """The summary shows counts, issues and every manual check."""
    ledger = Ledger(echo=None)
    ledger.fail("Activation Lock: ENABLED - Device is iCloud locked!")
    ledger.warn("Cycles: 650 (moderate wear)")
    ledger.add_manual_check("Test camera: FaceTime or Photo Booth")
    console = ScriptedConsole()

    verdict = render_summary(ledger, console, apple_silicon=True)

    out = console.output
    assert verdict == Verdict.CRITICAL
    assert "Risk Assessment: CRITICAL RISK / DO NOT BUY" in out
    assert "* Activation Lock: ENABLED - Device is iCloud locked!" in out
    assert "[ ] Test camera: FaceTime or Photo Booth" in out
    assert "Press Cmd+D for diagnostics" in out


def test_report_text_sections() -> None:
    """The flat report carries summary, issues, checklist, errors and snapshot."""
    ledger = Ledger(echo=None)
    ledger.passed("SIP: Enabled (system protected)")
    ledger.warn("Bluetooth: Not detected")
    ledger.add_manual_check("Test Bluetooth: Pair a device")
    errors = [{"time": "2024-01-01 10:00:00", "stage": "PHASE 7: GPU & GRAPHICS",
               "error": "boom"}]
    snapshot = {"cpu_percent": 12.5,
                "memory": {"total_gb": 17.2, "used_gb": 8.1, "free_gb": 9.1, "percent": 47.0}}

    text = build_report_text(ledger, IDENTITY, errors, snapshot)

    assert "Target: C02XK1ABCD12 / MacBook Pro" in text
    assert "Risk Level: LOW RISK" in text
    assert "Fails: 0 | Warnings: 1 | Passes: 1" in text
    assert "WARNINGS:\n  - Bluetooth: Not detected" in text
    assert "CRITICAL ISSUES:" not in text
    assert "  [ ] Test Bluetooth: Pair a device" in text
    assert "PHASE 7: GPU & GRAPHICS: boom" in text
    assert "Chip: Apple M2" in text
    assert "CPU load at report time: 12.5%" in text


def test_report_without_snapshot_or_errors() -> None:
    """Optional sections are left out when empty."""
    text = build_report_text(Ledger(echo=None), IDENTITY)
    assert "PHASE ERRORS:" not in text
    assert "CPU load" not in text
    assert text.endswith("-" * 16 + "\n")


def test_report_path_name(tmp_path: Path) -> None:
    """Reports are named MacAudit_<timestamp>.txt."""
    name = Path(report_path(str(tmp_path))).name
    assert re.fullmatch(r"MacAudit_\d{8}_\d{6}\.txt", name)


def test_write_report(tmp_path: Path) -> None:
    """A successful write announces the path."""
    console = ScriptedConsole()
    path = tmp_path / "MacAudit_test.txt"
    assert write_report(str(path), "hello\n", console)
    assert path.read_text(encoding="utf-8") == "hello\n"
    assert f"Report saved to: {path}" in console.output


def test_write_report_failure_is_not_fatal(tmp_path: Path) -> None:
    """An unwritable destination produces a warning, not an exception."""
    console = ScriptedConsole()
    path = tmp_path / "missing" / "MacAudit_test.txt"
    assert not write_report(str(path), "hello\n", console)
    assert "WARNING: failed to write report" in console.output


def test_report_uses_given_verdict() -> None:
    """A verdict handed in by the summary is not recomputed."""
    text = build_report_text(Ledger(echo=None), IDENTITY, verdict=Verdict.MODERATE)
    assert "Risk Level: MODERATE RISK / PROCEED WITH CAUTION" in text
