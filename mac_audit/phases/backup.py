# mac_audit/phases/backup.py
# Time Machine: a destination or backup history left behind means the
# seller's data association has not been fully removed.

from .. import config
from ..parsers import count_matching, field


def check_time_machine(ctx):
    ledger, console, run = ctx.ledger, ctx.console, ctx.runner

    console.subsection("Backup Status")
    status = run(["tmutil", "destinationinfo"], timeout=15)["stdout"]
    if "No destinations" in status:
        ledger.info("Time Machine: Not configured (normal for wiped Mac)")
    elif status:
        ledger.info("Time Machine: Configured")
        name = field(status, "Name")
        if name:
            ledger.warn(f"Backup destination still configured: {name}")
            console.say("    Seller should remove backup drive association.")

    console.subsection("Local Snapshots")
    snapshots = count_matching(run(["tmutil", "listlocalsnapshots", "/"], timeout=15)["stdout"],
                               r"com\.apple", 0)
    if snapshots > 0:
        ledger.info(f"Local snapshots: {snapshots} (can recover disk space)")
        ledger.note("Run 'sudo tmutil deletelocalsnapshots /' after purchase if needed")
    else:
        ledger.passed("No local snapshots consuming disk space")

    console.subsection("Last Backup")
    r = run(["defaults", "read", config.TIME_MACHINE_PLIST, "DestinationVolumeUUID"], timeout=10)
    if r["ok"] and r["stdout"]:
        ledger.info("Previous backup history exists")
        ledger.add_manual_check("Consider: Has seller's data been fully removed?")
    else:
        ledger.passed("No backup history references found")
