"""Tests for numeric normalisation and threshold tables."""

from __future__ import annotations

import operator

from mac_audit import config
from mac_audit.ledger import Ledger, Severity
from mac_audit.rules import Band, classify, grade, safe_int


def test_safe_int_strips_non_digits() -> None:
    """Unit suffixes and padding are dropped; garbage gives the default."""
    assert safe_int("") == 0
    assert safe_int("abc") == 0
    assert safe_int("abc", default=-1) == -1
    assert safe_int("12GB") == 12
    assert safe_int("  7 ") == 7
    assert safe_int(None, default=5) == 5
    assert safe_int(42) == 42


def test_classify_first_matching_row_wins() -> None:
    """Rows are walked top-down and the catch-all row takes the rest."""
    bands = (
        Band(10, Severity.PASS, "low"),
        Band(20, Severity.WARN, "mid"),
        Band(None, Severity.FAIL, "high"),
    )
    assert classify(5, bands).message == "low"
    assert classify(10, bands).message == "mid"
    assert classify(25, bands).message == "high"
    assert classify(25, bands[:2]) is None


def test_battery_cycle_bands() -> None:
    """Cycle counts move from pass through warn to fail as wear grows."""
    assert classify(50, config.BATTERY_CYCLE_BANDS).severity == Severity.PASS
    assert classify(450, config.BATTERY_CYCLE_BANDS).severity == Severity.PASS
    assert classify(650, config.BATTERY_CYCLE_BANDS).severity == Severity.WARN
    assert classify(950, config.BATTERY_CYCLE_BANDS).severity == Severity.WARN
    assert classify(1200, config.BATTERY_CYCLE_BANDS).severity == Severity.FAIL


def test_battery_health_compares_greater_or_equal() -> None:
    """80% is still healthy; anything under 70% is a failure."""
    compare = config.BATTERY_HEALTH_COMPARE
    assert classify(80, config.BATTERY_HEALTH_BANDS, compare).severity == Severity.PASS
    assert classify(75, config.BATTERY_HEALTH_BANDS, compare).severity == Severity.WARN
    assert classify(65, config.BATTERY_HEALTH_BANDS, compare).severity == Severity.FAIL


def test_disk_usage_bands() -> None:
    """Nearly full volumes warn, busy ones are informational."""
    compare = config.DISK_USAGE_COMPARE
    assert classify(97, config.DISK_USAGE_BANDS, compare).severity == Severity.WARN
    assert classify(90, config.DISK_USAGE_BANDS, compare).severity == Severity.INFO
    assert classify(85, config.DISK_USAGE_BANDS, compare).severity == Severity.PASS


def test_grade_records_formatted_finding() -> None:
    """grade normalises the raw text, records one finding and returns the value."""
    ledger = Ledger(echo=None)
    value = grade(ledger, "92%", config.BATTERY_HEALTH_BANDS, default=100,
                  compare=operator.ge)
    assert value == 92
    assert ledger.messages(Severity.PASS) == ["Health: 92% of original capacity"]


def test_grade_passes_extra_format_keywords() -> None:
    """Extra keywords reach the message template."""
    ledger = Ledger(echo=None)
    grade(ledger, 2, config.PANIC_BANDS, total=5, days=30)
    assert ledger.messages(Severity.WARN) == ["Recent panics (30 days): 2 of 5 total"]


def test_grade_uses_default_for_garbage() -> None:
    """Unparseable input falls back to the default before classification."""
    ledger = Ledger(echo=None)
    assert grade(ledger, "n/a", config.TEMP_SENSOR_BANDS, compare=operator.gt) == 0
    assert ledger.count(Severity.WARN) == 1
