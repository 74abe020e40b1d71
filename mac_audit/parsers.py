# mac_audit/parsers.py
# Narrow parsers over system tool output. Every function returns a default
# on malformed input instead of raising.

import re

from .rules import safe_int


def field(text, label, default=""):
    """
    Value after the first ": " on the first line containing `label`.
    Nested colons in the value are kept.
    """
    for line in (text or "").splitlines():
        if label in line and ":" in line:
            return line.split(":", 1)[1].strip() or default
    return default


def fields(text, label):
    out = []
    for line in (text or "").splitlines():
        if label in line and ":" in line:
            value = line.split(":", 1)[1].strip()
            if value:
                out.append(value)
    return out


def lines_matching(text, pattern, flags=re.IGNORECASE):
    rx = re.compile(pattern, flags)
    return [line for line in (text or "").splitlines() if rx.search(line)]


def count_matching(text, pattern, flags=re.IGNORECASE):
    return len(lines_matching(text, pattern, flags))


def contains(text, pattern, flags=re.IGNORECASE):
    return bool(text) and re.search(pattern, text, flags) is not None


def registry_value(text, key):
    """String value of `"key" = "value"` or `"key" = <"value">` in ioreg output."""
    m = re.search(r'"%s"\s*=\s*<?"([^"]*)"' % re.escape(key), text or "")
    return m.group(1) if m else ""


def split_sections(text):
    """
    Split combined system_profiler output on its top-level headers
    (unindented lines ending with ':'). Returns {header: block}.
    """
    sections = {}
    current = None
    for line in (text or "").splitlines():
        if line and not line[0].isspace() and line.rstrip().endswith(":"):
            current = line.rstrip()[:-1]
            sections[current] = [line]
        elif current is not None:
            sections[current].append(line)
    return {name: "\n".join(block).strip() for name, block in sections.items()}


def section(text, header):
    """First top-level block whose header matches the `header` regex."""
    for name, block in split_sections(text).items():
        if re.fullmatch(header, name):
            return block
    return ""


def version_gte(v1, v2):
    """True if dotted version v1 >= v2, comparing numeric components."""
    p1 = [safe_int(x, 0) for x in (v1 or "").split(".")]
    p2 = [safe_int(x, 0) for x in (v2 or "").split(".")]
    width = max(len(p1), len(p2))
    p1 += [0] * (width - len(p1))
    p2 += [0] * (width - len(p2))
    return p1 >= p2


def normalize_serial(s):
    return re.sub(r"[\s-]", "", (s or "").upper())
