# mac_audit/rules.py
# Numeric normalisation and ordered threshold tables shared by every phase
# that grades a number (cycle counts, capacity, disk usage, panics, ...).

import operator
import re
from collections import namedtuple

from .ledger import Severity

# threshold=None marks the catch-all row.
Band = namedtuple("Band", "threshold severity message")

_NON_DIGITS = re.compile(r"[^0-9]")


def safe_int(raw, default=0):
    """
    Strip everything except digits; return `default` if nothing is left.
    Never raises: "" -> default, "abc" -> default, "12GB" -> 12, "  7 " -> 7.
    """
    digits = _NON_DIGITS.sub("", str(raw if raw is not None else ""))
    if not digits:
        return default
    return int(digits)


def classify(value, bands, compare=operator.lt):
    """
    Walk `bands` top-down; the first row with compare(value, threshold)
    (or threshold None) wins. Returns that Band, or None if no row matched.
    """
    for band in bands:
        if band.threshold is None or compare(value, band.threshold):
            return band
    return None


def grade(ledger, raw, bands, default=0, compare=operator.lt, **fmt):
    """
    Normalise `raw`, classify it and record the finding. The message of the
    winning row is formatted with value=<int> plus any extra keywords.
    Returns the integer value.
    """
    value = safe_int(raw, default)
    band = classify(value, bands, compare)
    if band is not None:
        ledger.record(Severity(band.severity), band.message.format(value=value, **fmt))
    return value
