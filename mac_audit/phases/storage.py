# mac_audit/phases/storage.py

import psutil

from .. import config
from ..parsers import field
from ..rules import grade
from ..utils import bytes_to_gb


def check_storage_health(ctx):
    ledger, console = ctx.ledger, ctx.console
    disk = ctx.cache.get("disk")

    device = field(disk, "Device Node") or field(disk, "Device Identifier") or "boot volume"
    console.subsection(f"Boot Device: {device}")

    size = field(disk, "Disk Size")
    # "500.3 GB (500277792768 Bytes) ..." -> "500.3 GB"
    ledger.info(f"Capacity: {' '.join(size.split()[:2]) or 'Unknown'}")

    solid = field(disk, "Solid State")
    if solid == "Yes":
        ledger.info("Type: SSD (Solid State)")
    elif solid == "No":
        ledger.warn("Type: HDD (Spinning disk - slower, more fragile)")

    console.subsection("S.M.A.R.T Health")
    smart = field(disk, "SMART Status")
    if smart == "Verified":
        ledger.passed("S.M.A.R.T: Verified (drive healthy)")
    elif smart == "Not Supported":
        ledger.info("S.M.A.R.T: Not supported (normal for some NVMe/Apple SSDs)")
    elif smart in ("Failing", "About to Fail"):
        ledger.fail(f"S.M.A.R.T: {smart} - DRIVE IS FAILING!")
        console.say("    DO NOT PURCHASE. Data loss imminent.")
    elif smart:
        ledger.warn(f"S.M.A.R.T: {smart} (unusual status)")
    else:
        ledger.info("S.M.A.R.T: Status unavailable")

    console.subsection("Volume Usage")
    try:
        usage = psutil.disk_usage(str(ctx.host.root))
    except OSError:
        ledger.info("Free Space: Unknown")
        return
    ledger.info(f"Free Space: {bytes_to_gb(usage.free)} GB")
    grade(ledger, round(usage.percent), config.DISK_USAGE_BANDS,
          compare=config.DISK_USAGE_COMPARE)
