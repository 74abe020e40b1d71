# mac_audit/ledger.py
# Append-only record of findings and the deduplicated manual checklist.

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    INFO = "info"

    @property
    def tag(self):
        return f"[{self.name}]"


@dataclass(frozen=True)
class Finding:
    severity: Severity
    message: str


class Ledger:
    """
    Findings partitioned by severity, in the order they were recorded, plus
    the manual checklist. Nothing is ever removed or rewritten, so the final
    report is a faithful transcript of the run.
    """

    def __init__(self, echo=print, verbose=False):
        self.echo = echo
        self.verbose = verbose
        self._findings = {s: [] for s in Severity}
        self._counts = {s: 0 for s in Severity}
        self._manual = []

    def record(self, severity, message):
        severity = Severity(severity)
        finding = Finding(severity, message)
        self._findings[severity].append(finding)
        self._counts[severity] += 1
        if self.echo:
            self.echo(f"    {severity.tag} {message}")
        return finding

    def passed(self, message):
        return self.record(Severity.PASS, message)

    def warn(self, message):
        return self.record(Severity.WARN, message)

    def fail(self, message):
        return self.record(Severity.FAIL, message)

    def info(self, message):
        return self.record(Severity.INFO, message)

    def note(self, message):
        """Extra detail shown only in verbose mode; not a finding."""
        if self.verbose and self.echo:
            self.echo(f"      -> {message}")

    def add_manual_check(self, text):
        # Linear scan; the checklist stays small.
        for existing in self._manual:
            if existing == text:
                return False
        self._manual.append(text)
        return True

    def findings(self, severity):
        return tuple(self._findings[Severity(severity)])

    def messages(self, severity):
        return [f.message for f in self._findings[Severity(severity)]]

    def count(self, severity):
        return self._counts[Severity(severity)]

    def counts(self):
        return {s.value: n for s, n in self._counts.items()}

    @property
    def manual_checks(self):
        return tuple(self._manual)
