# mac_audit/phases/recovery.py

from .. import config
from ..parsers import contains, field


def recovery_present(ctx):
    """
    APFS volume groups first, then the boot container, then the classic
    partition table of older HFS+ systems.
    """
    disk = ctx.cache.get("disk")

    if field(disk, "Part of Whole"):
        r = ctx.runner(["diskutil", "apfs", "listVolumeGroups"], timeout=30)
        if contains(r["stdout"], r"recovery"):
            return True

    container = field(disk, "APFS Container Reference")
    if container:
        r = ctx.runner(["diskutil", "apfs", "list", container.split()[-1]], timeout=30)
        if contains(r["stdout"], r"recovery|preboot"):
            return True

    r = ctx.runner(["diskutil", "list", "internal"], timeout=30)
    return contains(r["stdout"], r"Recovery|Apple_Boot")


def check_recovery_readiness(ctx):
    ledger, console = ctx.ledger, ctx.console

    console.subsection("Recovery Partition")
    if recovery_present(ctx):
        ledger.passed("Recovery System: Present")
        if ctx.caps.apple_silicon:
            ledger.add_manual_check("Test Recovery Mode: Restart + hold Power button")
        else:
            ledger.add_manual_check("Test Recovery Mode: Restart + Cmd+R")
    else:
        ledger.warn("Recovery System: Not clearly detected")
        ledger.info("This can be normal - manual test recommended")
        ledger.add_manual_check("IMPORTANT: Test Recovery Mode manually!")

    console.subsection("iCloud Association")
    if ctx.host.is_file(config.ICLOUD_ACCOUNTS_PLIST):
        ledger.info("iCloud Accounts detected on user profile")
        console.say("    Reminder: Seller MUST sign out before handing over device.")
    else:
        ledger.info("No local iCloud accounts detected (Good sign)")
