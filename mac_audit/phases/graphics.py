# mac_audit/phases/graphics.py
# Discrete GPUs (notably AMD parts in 15"/16" MacBook Pros) fail independently
# of the rest of the board; integrated graphics are rated more reliable.

import re

from ..parsers import field, fields


def check_gpu_health(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("Graphics Hardware")

    displays = ctx.cache.get("displays")
    gpus = fields(displays, "Chipset Model")
    if not gpus:
        ledger.warn("No GPU information available")
        return

    ledger.info(f"GPU(s) detected: {len(gpus)}")
    discrete = amd = False
    for gpu in gpus:
        ledger.info(f"GPU: {gpu}")
        if re.search(r"AMD|Radeon|NVIDIA|GeForce", gpu):
            discrete = True
            amd = amd or re.search(r"AMD|Radeon", gpu) is not None

    if discrete:
        ledger.warn("Discrete GPU detected")
        ctx.console.say("    Discrete GPUs can fail independently. Test thoroughly!")
        ledger.add_manual_check("GPU stress test: Run graphics-intensive app, watch for artifacts")
        ledger.add_manual_check("Check for GPU-related kernel panics (see stability section)")
        if amd:
            ledger.info("AMD Radeon GPU - known for thermal issues in some models")
            ledger.add_manual_check("Test external display output via Thunderbolt/HDMI")
    else:
        ledger.passed("Integrated GPU only (more reliable)")

    vram = field(displays, "VRAM")
    if vram:
        ledger.info(f"VRAM: {vram}")

    metal = field(displays, "Metal")
    if metal:
        ledger.info(f"Metal: {metal}")
