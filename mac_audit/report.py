# mac_audit/report.py
# Risk verdict, terminal summary and the flat text report.

import os
from enum import Enum

import psutil

from . import config
from .ledger import Severity
from .utils import bytes_to_gb, now_str, ts_compact


class Verdict(Enum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def label(self):
        return VERDICT_LABELS[self]


VERDICT_LABELS = {
    Verdict.CRITICAL: "CRITICAL RISK / DO NOT BUY",
    Verdict.MODERATE: "MODERATE RISK / PROCEED WITH CAUTION",
    Verdict.LOW: "LOW RISK",
}


def aggregate(fail_count, warn_count, warn_threshold=config.WARN_THRESHOLD):
    """Any fail is critical; more than `warn_threshold` warnings is moderate."""
    if fail_count > 0:
        return Verdict.CRITICAL
    if warn_count > warn_threshold:
        return Verdict.MODERATE
    return Verdict.LOW


def verdict_for(ledger):
    return aggregate(ledger.count(Severity.FAIL), ledger.count(Severity.WARN))


def diagnostics_hint(apple_silicon):
    if apple_silicon:
        return ("Shut down, then hold Power button until 'Loading options' appears",
                "Press Cmd+D for diagnostics")
    return ("Shut down, then hold D key while pressing Power",
            "Or hold Option+D for internet-based diagnostics")


def render_summary(ledger, console, apple_silicon=False):
    verdict = verdict_for(ledger)
    say = console.say

    say(f"  Checks Passed:   {ledger.count(Severity.PASS)}")
    say(f"  Warnings:        {ledger.count(Severity.WARN)}")
    say(f"  Critical Fails:  {ledger.count(Severity.FAIL)}")
    say(f"  Risk Assessment: {verdict.label}")
    say("")

    for title, severity in (("!!! CRITICAL ISSUES !!!", Severity.FAIL),
                            ("! WARNINGS !", Severity.WARN)):
        messages = ledger.messages(severity)
        if messages:
            say(f"  {title}")
            for msg in messages:
                say(f"  * {msg}")
            say("")

    say("  RECOMMENDED: Run Apple Diagnostics for hardware verification")
    for line in diagnostics_hint(apple_silicon):
        say(f"  -> {line}")
    say("")

    say("  MANUAL CHECKLIST:")
    for item in ledger.manual_checks:
        say(f"  [ ] {item}")
    return verdict


def runtime_snapshot():
    snap = {"cpu_percent": psutil.cpu_percent(interval=0.5)}
    vm = psutil.virtual_memory()
    snap["memory"] = {
        "total_gb": bytes_to_gb(vm.total),
        "used_gb": bytes_to_gb(vm.used),
        "free_gb": bytes_to_gb(vm.available),
        "percent": vm.percent,
    }
    return snap


def build_report_text(ledger, identity, errors=(), snapshot=None, verdict=None):
    if verdict is None:
        verdict = verdict_for(ledger)
    lines = [
        "=" * 60,
        f"   MAC AUDIT REPORT - {config.TOOL_NAME} v{config.TOOL_VERSION}",
        f"   Date: {now_str()}",
        f"   Target: {identity.serial} / {identity.model}",
        "=" * 60,
        "",
        "SUMMARY:",
        f"  Risk Level: {verdict.label}",
        f"  Fails: {ledger.count(Severity.FAIL)} | Warnings: {ledger.count(Severity.WARN)}"
        f" | Passes: {ledger.count(Severity.PASS)}",
        "",
    ]

    for title, severity in (("CRITICAL ISSUES:", Severity.FAIL), ("WARNINGS:", Severity.WARN)):
        messages = ledger.messages(severity)
        if messages:
            lines.append(title)
            lines.extend(f"  - {m}" for m in messages)
            lines.append("")

    lines.append("MANUAL CHECKLIST:")
    lines.extend(f"  [ ] {item}" for item in ledger.manual_checks)
    lines.append("")

    if errors:
        lines.append("PHASE ERRORS:")
        lines.extend(f"  - [{e['time']}] {e['stage']}: {e['error']}" for e in errors)
        lines.append("")

    lines += [
        "SYSTEM SNAPSHOT:",
        "-" * 16,
        f"Chip: {identity.chip}",
        f"RAM: {identity.memory}",
        f"OS: {identity.os_version}",
    ]
    if snapshot:
        mem = snapshot.get("memory", {})
        lines.append(f"CPU load at report time: {snapshot.get('cpu_percent')}%")
        lines.append(f"Memory in use: {mem.get('used_gb')} / {mem.get('total_gb')} GB"
                     f" ({mem.get('percent')}%)")
    lines.append("-" * 16)
    return "\n".join(lines) + "\n"


def report_path(directory):
    return os.path.join(directory, f"MacAudit_{ts_compact()}.txt")


def write_report(path, text, console):
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        console.status(f"WARNING: failed to write report ({e})")
        return False
    console.status(f"Report saved to: {path}")
    return True
