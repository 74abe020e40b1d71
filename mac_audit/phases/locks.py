# mac_audit/phases/locks.py
# Phases 3-4: organisational ownership (DEP/MDM, JAMF and friends) and the
# iCloud Activation Lock.

import os

from .. import config
from ..parsers import contains, count_matching, field


def _enrollment(ledger, label, status, enrolled_msg, clean_msg):
    if status == "No":
        ledger.passed(f"{label}: {clean_msg}")
    elif status == "Yes":
        ledger.fail(f"{label}: {enrolled_msg}")
    else:
        ledger.warn(f"{label}: Status unclear ({status or 'not reported'})")


def check_enterprise_locks(ctx):
    ledger, console, host = ctx.ledger, ctx.console, ctx.host

    console.progress("Checking enrollment status")
    enrollment = ctx.cache.get("enrollment")

    console.subsection("Device Enrollment Program (DEP/ABM)")
    _enrollment(ledger, "DEP", field(enrollment, "Enrolled via DEP"),
                "ENROLLED - Device registered to an organization!",
                "Not enrolled (consumer device)")

    console.subsection("Mobile Device Management (MDM)")
    _enrollment(ledger, "MDM", field(enrollment, "MDM enrollment"),
                "ENROLLED - Device is actively managed!",
                "Not enrolled (not remotely managed)")

    # Leftovers after an incomplete wipe still mean the device was enterprise-owned.
    console.subsection("JAMF Enterprise Management")
    jamf = host.existing(config.JAMF_PATHS)
    for path in jamf:
        ledger.fail(f"JAMF artifact: {path}")
    if not jamf:
        ledger.passed("No JAMF management software detected")

    console.subsection("Configuration Profiles")
    mdm_profiles = count_matching(ctx.cache.get("profiles"), r"com\.apple\.mdm", 0)
    if mdm_profiles > 0:
        ledger.fail(f"MDM profiles installed: {mdm_profiles}")
    else:
        ledger.passed("No MDM configuration profiles detected")

    console.subsection("Other Enterprise Software")
    others = host.existing(config.ENTERPRISE_PATHS)
    for path in others:
        ledger.warn(f"Enterprise software detected: {os.path.basename(path)}")
    if not others:
        ledger.passed("No other enterprise management software detected")


def check_activation_lock(ctx):
    """
    Activation Lock is reported on Apple Silicon and T2 Macs. A locked
    device cannot be reactivated without the previous owner's Apple ID.
    """
    ledger = ctx.ledger
    status = field(ctx.cache.get("hardware"), "Activation Lock")

    if status == "Disabled":
        ledger.passed("Activation Lock: DISABLED (ready for new owner)")
    elif status == "Enabled":
        ledger.fail("Activation Lock: ENABLED - Device is iCloud locked!")
        ctx.console.say("    Seller MUST disable: Settings > Apple ID > Find My > Find My Mac > OFF")
    else:
        ledger.warn(f"Activation Lock: Status unclear ({status or 'not reported'})")
        ledger.add_manual_check("Verify Activation Lock: Settings > Apple ID > Find My")

    if contains(ctx.cache.get("nvram"), r"fmm-mobileme-token"):
        ledger.warn("Find My Mac token present in NVRAM")
        ledger.note("This may indicate Find My was recently active")
