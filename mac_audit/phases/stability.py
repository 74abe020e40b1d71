# mac_audit/phases/stability.py
# Kernel panics, sleep/wake failures, uptime, update status and install age.

import re
import time
from datetime import datetime

import psutil

from .. import config
from ..ledger import Severity
from ..parsers import contains, count_matching
from ..rules import classify, grade
from ..utils import run_bounded

DAY = 86400

# Checked top-down against the head of the newest panic log; first hit wins.
PANIC_CAUSES = (
    (r"AMD|Radeon", "Discrete GPU (AMD) - potential hardware issue"),
    (r"NVIDIA|GeForce", "Discrete GPU (NVIDIA) - potential hardware issue"),
    (r"GPU|graphics|Metal|AGP", None),  # resolved against the installed GPUs
    (r"AppleANS|NVMe|disk|IOStorage|APFS", "Storage/Disk I/O - potential SSD issue"),
    (r"memory|zone|kalloc|zalloc|vm_", "Memory related - potential RAM issue"),
    (r"USB|Thunderbolt|IOUSBHost|AppleUSB", "USB/Thunderbolt port issue"),
    (r"Bluetooth|BT|AppleBluetooth", "Bluetooth hardware/driver issue"),
    (r"Wi-Fi|AirPort|wlan|IO80211", "WiFi hardware/driver issue"),
    (r"kext|extension|com\.apple|com\.", "Kernel extension (likely software issue)"),
    (r"sleep|wake|power|hibernat", "Sleep/Wake cycle issue"),
    (r"thermal|temp|overheat", "Thermal/Overheating issue"),
)

WAKE_QUERY = ("log", "show", "--predicate", 'eventMessage contains "Wake failure"', "--last", "7d")


def panic_cause(content, displays=""):
    for pattern, cause in PANIC_CAUSES:
        if contains(content, pattern):
            if cause is not None:
                return cause
            if contains(displays, r"AMD|Radeon|NVIDIA"):
                return "GPU/Graphics - may be discrete GPU issue"
            return "Graphics driver issue (likely software, not hardware)"
    return None


def install_age(host, now=None):
    """(days, mtime) since setup finished, or None when no marker file exists."""
    now = time.time() if now is None else now
    for marker in (config.SETUP_DONE_FILE, config.INSTALL_LOG_FILE):
        mtime = host.mtime(marker)
        if mtime:
            return max(int((now - mtime) // DAY), 0), mtime
    return None


def check_system_stability(ctx):
    _panics(ctx)
    _sleep_wake(ctx)
    _uptime(ctx)
    _updates(ctx)
    _install_age(ctx)


def _panics(ctx):
    ledger, console = ctx.ledger, ctx.console
    console.subsection("Kernel Panic History")

    now = time.time()
    threshold = now - config.PANIC_RECENT_DAYS * DAY
    logs = []
    for directory in config.DIAGNOSTIC_DIRS:
        logs.extend(ctx.host.find(directory, "*.panic"))
    logs.sort(key=lambda item: item[0], reverse=True)

    total = len(logs)
    recent = sum(1 for mtime, _ in logs if mtime > threshold)

    if total == 0:
        # No panics on a freshly wiped system says little.
        age = install_age(ctx.host, now)
        if age is not None and age[0] < 7:
            ledger.info("No kernel panics (but system freshly installed - limited history)")
        else:
            ledger.passed("No kernel panic logs found (stable system)")
        return

    cause = panic_cause(ctx.host.head(logs[0][1]), ctx.cache.get("displays"))
    band = classify(recent, config.PANIC_BANDS)
    grade(ledger, recent, config.PANIC_BANDS, total=total, days=config.PANIC_RECENT_DAYS)

    if band.severity == Severity.INFO:
        if cause:
            ledger.note(f"Last panic cause: {cause}")
    elif band.severity == Severity.WARN:
        if cause:
            ledger.info(f"Likely cause: {cause}")
            if re.search(r"software|driver|extension", cause):
                console.say("    This is often fixed by macOS updates. Less concerning.")
            elif re.search(r"Discrete GPU|SSD|RAM", cause):
                console.say("    Hardware-related cause. Investigate before purchase!")
        ledger.add_manual_check("Ask seller about system stability and crash history")
    else:
        console.say("    Frequent recent panics indicate hardware problems.")
        if cause:
            ledger.info(f"Likely cause: {cause}")

    for _, path in logs[:5]:
        ledger.note(path.name)


def _sleep_wake(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("Sleep/Wake Issues")
    ctx.console.progress(f"Analyzing system logs (max {config.WAKE_LOG_WAIT}s)")

    text = run_bounded(WAKE_QUERY, ctx.artifacts, "wake", wait=config.WAKE_LOG_WAIT)
    if text is None:
        ledger.info("Sleep/wake log analysis timed out (logs too large)")
        ledger.add_manual_check("Test sleep/wake manually: Close lid, wait, reopen")
        return

    failures = count_matching(text, r"Wake failure", 0)
    if failures:
        ledger.warn(f"Wake failures in last 7 days: {failures}")
        ledger.add_manual_check("Test sleep/wake multiple times before purchase")
    else:
        ledger.passed("No recent sleep/wake issues in logs")


def _uptime(ctx):
    ledger, console = ctx.ledger, ctx.console
    console.subsection("System Uptime")

    boot = psutil.boot_time()
    if boot <= config.MIN_VALID_EPOCH:
        ledger.info("Uptime: Could not be determined")
        return

    seconds = int(time.time() - boot)
    hours = seconds // 3600
    # A restart right before the viewing hides accumulated problems.
    if seconds < 120:
        ledger.warn(f"Uptime: {seconds} seconds (JUST booted!)")
        console.say("    Suspicious timing. Ask seller why Mac was just restarted.")
    elif hours < 1:
        minutes = seconds // 60
        if minutes < 5:
            ledger.warn(f"Uptime: {minutes} minutes (freshly booted)")
            console.say("    Ask seller why Mac was just restarted.")
        else:
            ledger.info(f"Uptime: {minutes} minutes (booted recently)")
    elif hours < 24:
        ledger.info(f"Uptime: ~{hours} hours")
    else:
        ledger.passed(f"Uptime: ~{hours // 24} days (stable operation)")


def _updates(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("macOS Update Status")

    version = ctx.cache.get("os_version") or ctx.identity.os_version
    build = ctx.cache.get("os_build")
    ledger.info(f"Running: macOS {version} ({build})")

    r = ctx.runner(["softwareupdate", "-l"], timeout=60)
    out = f"{r['stdout']}\n{r['stderr']}"
    if contains(out, r"Software Update found"):
        ledger.warn("Software updates available - system not fully current")
        ledger.add_manual_check("Update macOS after purchase: System Settings > Software Update")
    elif contains(out, r"No new software available"):
        ledger.passed("macOS is up to date")
    else:
        ledger.info("Update status: Could not determine (check manually)")


def _install_age(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("macOS Installation Age")

    age = install_age(ctx.host)
    if age is None:
        ledger.info("Installation date: Could not be determined")
        return

    days, mtime = age
    date = datetime.fromtimestamp(mtime).strftime("%Y-%m-%d")
    grade(ledger, days, config.INSTALL_AGE_BANDS, date=date, months=days // 30)
    if days < 7:
        ctx.console.say("    Ask seller why system was freshly installed.")
