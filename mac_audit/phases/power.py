# mac_audit/phases/power.py

import re

from .. import config
from ..parsers import field, lines_matching, registry_value
from ..rules import grade, safe_int

CONDITION_WARN = ("Service Recommended", "Replace Soon")
CONDITION_FAIL = ("Replace Now", "Check Battery")

# Apple and its authorised cell suppliers (as reported by the battery gas gauge).
AUTHORISED_SUPPLIERS = {
    "Apple": "Apple (genuine)",
    "Apple Inc.": "Apple (genuine)",
    "SMP": "Simplo Technology (Apple-authorized supplier)",
    "SWD": "Sunwoda Electronic (Apple-authorized supplier)",
    "DSY": "Desay Battery (Apple-authorized supplier)",
    "Simplo": "Simplo (Apple-authorized supplier)",
    "Sunwoda": "Sunwoda (Apple-authorized supplier)",
    "Desay": "Desay (Apple-authorized supplier)",
}


def check_battery_health(ctx):
    ledger, console, caps = ctx.ledger, ctx.console, ctx.caps

    if not caps.has_battery:
        if caps.device_type in ("desktop", "all-in-one"):
            ledger.passed(f"No battery (normal for {ctx.identity.model or caps.device_type})")
        elif caps.device_type == "laptop":
            ledger.fail("No battery detected on laptop - hardware issue!")
        else:
            ledger.info("No battery detected (Desktop Mac)")
        return

    power = ctx.cache.get("power")

    console.subsection("Charge Cycles")
    cycles = safe_int(field(power, "Cycle Count"), 0)
    if cycles > 0:
        grade(ledger, cycles, config.BATTERY_CYCLE_BANDS)
    else:
        ledger.warn("Cycle count unavailable")

    console.subsection("Battery Condition")
    condition = field(power, "Condition:")
    if condition == "Normal":
        ledger.passed("Condition: Normal")
    elif condition in CONDITION_WARN:
        ledger.warn(f"Condition: {condition} (degraded performance)")
    elif condition in CONDITION_FAIL:
        ledger.fail(f"Condition: {condition} (needs immediate attention)")
    else:
        ledger.info(f"Condition: {condition or 'Not reported'}")

    console.subsection("Capacity Health")
    _capacity(ledger, power)

    console.subsection("Battery Authenticity")
    _manufacturer(ledger, console, ctx.cache.get("battery_registry"))


def _capacity(ledger, power):
    # The field name changed across macOS releases.
    pct = None
    for line in lines_matching(power, r"Maximum Capacity|State of Health|MaxCapacity", 0):
        m = re.search(r"(\d+)%", line)
        if m:
            pct = m.group(1)
            break

    if pct is not None:
        value = grade(ledger, pct, config.BATTERY_HEALTH_BANDS, default=100,
                      compare=config.BATTERY_HEALTH_COMPARE)
        if value < config.BATTERY_HEALTH_THRESHOLD:
            ledger.info("May be eligible for Apple battery replacement")
        return

    current = 0
    for line in lines_matching(power, r"Full Charge Capacity|MaxCapacity", 0):
        current = safe_int(line.split(":", 1)[-1], 0)
        break
    if current > 0:
        ledger.info(f"Current capacity: {current} mAh")
        ledger.info("Original design capacity not reported by system")
    else:
        ledger.info("Capacity details unavailable")


def _manufacturer(ledger, console, registry):
    maker = (registry_value(registry, "Manufacturer")
             or registry_value(registry, "DeviceName")
             or registry_value(registry, "BatteryManufacturer"))

    if not maker:
        ledger.info("Manufacturer: Not reported (normal for some Mac models)")
    elif maker in AUTHORISED_SUPPLIERS:
        ledger.passed(f"Manufacturer: {AUTHORISED_SUPPLIERS[maker]}")
    else:
        ledger.warn(f"Manufacturer: {maker} (possibly third-party)")
        console.say("    Third-party batteries may have lower capacity or safety concerns.")
        console.say("    Note: Some legitimate repairs use authorized non-Apple parts.")
