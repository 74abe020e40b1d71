"""End-to-end runs of the command-line entry point over fakes."""

from __future__ import annotations

from pathlib import Path

import pytest

from mac_audit import cli, report
from mac_audit.config import Options

from .conftest import SERIAL, FakeRunner, ScriptedConsole


def run_audit(runner, host, report_dir, console, options=None):
    return cli.run(
        options or Options(quick=True),
        console=console,
        runner=runner,
        host=host,
        launcher=lambda cmd: None,
        env={"MAC_AUDIT_REPORT_DIR": str(report_dir)},
        machine=lambda: "arm64",
        which=lambda tool: f"/usr/bin/{tool}",
        snapshot=None,
    )


def test_parse_args_ignores_unknown_flags() -> None:
    """Unknown arguments are returned, not rejected."""
    options, unknown = cli.parse_args(["--quick", "--frobnicate", "extra"])
    assert options == Options(quick=True)
    assert unknown == ["--frobnicate", "extra"]


def test_parse_args_all_flags() -> None:
    options, _ = cli.parse_args(["--no-report", "--verbose"])
    assert options.no_report and options.verbose and not options.quick


def test_help_exits_cleanly(capsys: pytest.CaptureFixture[str]) -> None:
    """--help prints usage and exits with status 0."""
    with pytest.raises(SystemExit) as exc:
        cli.parse_args(["--help"])
    assert exc.value.code == 0
    assert "--quick" in capsys.readouterr().out


@pytest.mark.usefixtures("quiet_host_state")
def test_clean_run_writes_report(runner, host, tmp_path: Path) -> None:
    """A full quick audit of a healthy Mac exits 0 with a low-risk report."""
    console = ScriptedConsole(texts=[SERIAL], keys=["y", "n"])

    code = run_audit(runner, host, tmp_path, console)

    assert code == cli.EXIT_OK
    reports = list(tmp_path.glob("MacAudit_*.txt"))
    assert len(reports) == 1
    text = reports[0].read_text(encoding="utf-8")
    assert "Risk Level: LOW RISK" in text
    assert "MANUAL CHECKLIST:" in text
    assert "AUDIT COMPLETE" in console.output


@pytest.mark.usefixtures("quiet_host_state")
def test_no_report_option(runner, host, tmp_path: Path) -> None:
    """--no-report leaves the report directory empty."""
    console = ScriptedConsole(texts=[SERIAL], keys=["y", "n"])
    code = run_audit(runner, host, tmp_path, console, Options(quick=True, no_report=True))
    assert code == cli.EXIT_OK
    assert list(tmp_path.glob("MacAudit_*.txt")) == []


def test_prerequisite_failure_exits_1(host, tmp_path: Path) -> None:
    """A host that is not a Mac stops before any phase runs."""
    console = ScriptedConsole()
    code = run_audit(FakeRunner({}), host, tmp_path, console)
    assert code == cli.EXIT_PREREQUISITE
    assert "ERROR: Cannot determine macOS version" in console.output
    assert "PHASE 1" not in console.output


@pytest.mark.usefixtures("quiet_host_state")
def test_interrupt_still_reports_and_exits_0(runner, host, tmp_path: Path,
                                            monkeypatch: pytest.MonkeyPatch) -> None:
    """Ctrl+C mid-run skips the remaining phases; the run still completes normally."""

    def interrupted(ctx):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "PHASES", (("PHASE 1: PHYSICAL SERIAL VERIFICATION", interrupted),))
    console = ScriptedConsole()

    code = run_audit(runner, host, tmp_path, console)

    assert code == cli.EXIT_OK
    assert not hasattr(cli, "EXIT_INTERRUPTED")
    text = next(tmp_path.glob("MacAudit_*.txt")).read_text(encoding="utf-8")
    assert "Re-run the audit to complete all phases" in text


@pytest.mark.usefixtures("quiet_host_state")
def test_verdict_computed_once_per_run(runner, host, tmp_path: Path,
                                       monkeypatch: pytest.MonkeyPatch) -> None:
    """The summary's verdict is the one written to the report."""
    calls = []
    original = report.verdict_for

    def counting(ledger):
        calls.append(ledger)
        return original(ledger)

    monkeypatch.setattr(report, "verdict_for", counting)
    console = ScriptedConsole(texts=[SERIAL], keys=["y", "n"])

    assert run_audit(runner, host, tmp_path, console) == cli.EXIT_OK
    assert len(calls) == 1
    text = next(tmp_path.glob("MacAudit_*.txt")).read_text(encoding="utf-8")
    assert "Risk Level: LOW RISK" in text
