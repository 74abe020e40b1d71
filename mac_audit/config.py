# mac_audit/config.py
# Tool constants, path lists and threshold tables.
#
# The threshold bands below follow Apple guidance and community experience;
# several phases historically used slightly different cutoffs for similar
# quantities, so treat every table here as tunable.

import operator
from dataclasses import dataclass

from .ledger import Severity
from .rules import Band

TOOL_NAME = "MAC AUDIT"
TOOL_VERSION = "1.0"
MIN_MACOS_VERSION = "10.15"

REQUIRED_TOOLS = ("system_profiler", "diskutil", "profiles", "ioreg", "csrutil", "nvram")

CONNECTIVITY_URL = "https://www.apple.com/library/test/success.html"

# -----------------------------
# Stress test
# -----------------------------
STRESS_TEST_DURATION = 60      # seconds
STRESS_GRACE_PERIOD = 0.5      # seconds between SIGTERM and SIGKILL
DEFAULT_CPU_CORES = 4

# -----------------------------
# Risk
# -----------------------------
WARN_THRESHOLD = 2             # more warnings than this => moderate risk

# -----------------------------
# Threshold tables
# -----------------------------
BATTERY_CYCLES_EXCELLENT = 300
BATTERY_CYCLES_GOOD = 500
BATTERY_CYCLES_MODERATE = 800
BATTERY_CYCLES_HIGH = 1000

BATTERY_CYCLE_BANDS = (
    Band(100, Severity.PASS, "Cycles: {value} (like new)"),
    Band(BATTERY_CYCLES_EXCELLENT, Severity.PASS, "Cycles: {value} (excellent)"),
    Band(BATTERY_CYCLES_GOOD, Severity.PASS, "Cycles: {value} (good)"),
    Band(BATTERY_CYCLES_MODERATE, Severity.WARN, "Cycles: {value} (moderate wear)"),
    Band(BATTERY_CYCLES_HIGH, Severity.WARN, "Cycles: {value} (significant wear - replacement soon)"),
    Band(None, Severity.FAIL, "Cycles: {value} (HIGH - battery likely degraded)"),
)

BATTERY_HEALTH_THRESHOLD = 80
BATTERY_HEALTH_BANDS = (
    Band(BATTERY_HEALTH_THRESHOLD, Severity.PASS, "Health: {value}% of original capacity"),
    Band(70, Severity.WARN, "Health: {value}% - degraded, replacement recommended"),
    Band(None, Severity.FAIL, "Health: {value}% - battery significantly degraded"),
)
BATTERY_HEALTH_COMPARE = operator.ge

DISK_USAGE_WARNING = 85
DISK_USAGE_CRITICAL = 95
DISK_USAGE_BANDS = (
    Band(DISK_USAGE_CRITICAL, Severity.WARN, "Disk {value}% full - critically low space"),
    Band(DISK_USAGE_WARNING, Severity.INFO, "Disk {value}% full - may need cleanup"),
    Band(None, Severity.PASS, "Disk usage healthy: {value}%"),
)
DISK_USAGE_COMPARE = operator.gt

PANIC_RECENT_DAYS = 30
PANIC_COUNT_WARNING = 3
PANIC_BANDS = (
    Band(1, Severity.INFO, "Panics found: {total} (all older than {days} days)"),
    Band(PANIC_COUNT_WARNING, Severity.WARN, "Recent panics ({days} days): {value} of {total} total"),
    Band(None, Severity.FAIL, "Recent panics ({days} days): {value} (unstable system!)"),
)

TEMP_SENSOR_BANDS = (
    Band(5, Severity.PASS, "Temperature sensors active: {value}+"),
    Band(0, Severity.INFO, "Temperature sensors found: {value}"),
    Band(None, Severity.WARN, "Temperature sensor data not accessible"),
)
TEMP_SENSOR_COMPARE = operator.gt

INSTALL_AGE_BANDS = (
    Band(7, Severity.WARN, "macOS installed: {date} ({value} days ago - VERY RECENT)"),
    Band(30, Severity.INFO, "macOS installed: {date} ({value} days ago - recent)"),
    Band(None, Severity.PASS, "macOS installed: {date} (~{months} months ago)"),
)

SERIAL_MIN_LENGTH = 8
SERIAL_MAX_LENGTH = 14

WAKE_LOG_WAIT = 5              # seconds before the log scan is abandoned
MIN_VALID_EPOCH = 946684800    # 2000-01-01

# -----------------------------
# Paths
# -----------------------------
DIAGNOSTIC_DIRS = ("/Library/Logs/DiagnosticReports", "~/Library/Logs/DiagnosticReports")
SETUP_DONE_FILE = "/var/db/.AppleSetupDone"
INSTALL_LOG_FILE = "/var/log/install.log"
ROSETTA_RUNTIME = "/Library/Apple/usr/share/rosetta/rosetta"
ICLOUD_ACCOUNTS_PLIST = "~/Library/Preferences/MobileMeAccounts.plist"
TIME_MACHINE_PLIST = "/Library/Preferences/com.apple.TimeMachine.plist"
FIREWALL_TOOL = "/usr/libexec/ApplicationFirewall/socketfilterfw"
PLIST_BUDDY = "/usr/libexec/PlistBuddy"

JAMF_PATHS = (
    "/usr/local/bin/jamf",
    "/usr/local/jamf",
    "/Library/LaunchDaemons/com.jamfsoftware.jamf.daemon.plist",
    "/Library/LaunchDaemons/com.jamfsoftware.startupItem.plist",
    "/Library/Preferences/com.jamfsoftware.jamf.plist",
    "/var/log/jamf.log",
    "/Library/Application Support/JAMF",
)

ENTERPRISE_PATHS = (
    "/Library/Intune",
    "/Library/Microsoft/Intune",
    "/Library/Kandji",
    "/Library/Mosyle",
    "/Library/Addigy",
    "/Library/SimpleMDM",
    "/Library/Workspace ONE",
    "/Library/Application Support/AirWatch",
)

TAMPERING_PATHS = (
    "/usr/lib/libhook.dylib",
    "/usr/lib/substrate.dylib",
    "/Library/MobileSubstrate",
    "/private/var/lib/cydia",
    "/usr/sbin/frida-server",
    "/usr/local/bin/cycript",
    "/Library/LaunchDaemons/com.saurik.Cydia.Startup.plist",
)

XPROTECT_PLISTS = (
    "/System/Library/CoreServices/XProtect.bundle/Contents/Resources/XProtect.meta.plist",
    "/Library/Apple/System/Library/CoreServices/XProtect.bundle/Contents/Resources/XProtect.meta.plist",
    "/System/Library/CoreServices/XProtect.app/Contents/Resources/XProtect.meta.plist",
)

TEST_SOUNDS = (
    "/System/Library/Sounds/Glass.aiff",
    "/System/Library/Sounds/Ping.aiff",
    "/System/Library/Sounds/Pop.aiff",
    "/System/Library/Sounds/Basso.aiff",
)
SOUND_SECONDS = 1.5
SPEECH_SECONDS = 3.0


@dataclass(frozen=True)
class Options:
    quick: bool = False
    no_report: bool = False
    verbose: bool = False
