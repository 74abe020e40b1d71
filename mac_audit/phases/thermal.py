# mac_audit/phases/thermal.py

import re

from .. import config
from ..parsers import count_matching, field, lines_matching
from ..rules import grade


def fan_speeds(ioreg, limit=3):
    """First few RPM readings from the fan keys of the registry dump."""
    speeds = []
    for line in lines_matching(ioreg, r"FanSpeed|CurrentSpeed|TargetSpeed", 0):
        speeds.extend(int(n) for n in re.findall(r"(?<!\d)\d{3,4}(?!\d)", line))
        if len(speeds) >= limit:
            break
    return speeds[:limit]


def check_thermal_sensors(ctx):
    ledger, console, caps = ctx.ledger, ctx.console, ctx.caps
    ioreg = ctx.cache.get("ioreg")

    console.subsection("System Management Controller")
    if caps.apple_silicon:
        ledger.info("Apple Silicon: Integrated power management")
    else:
        smc = field(ctx.cache.get("hardware"), "SMC Version")
        ledger.info(f"SMC Version: {smc or 'Not reported (normal for T2 Macs)'}")
        ledger.add_manual_check("Intel Mac: Try SMC reset if issues occur (Shift+Ctrl+Option+Power)")

    console.subsection("Cooling System")
    if lines_matching(ioreg, r"Fan"):
        fans = count_matching(ioreg, r"FanSpeed|Fan0|Fan1", 0)
        if fans > 0:
            ledger.passed(f"Fan sensors detected: {fans}")
            speeds = fan_speeds(ioreg)
            if speeds:
                ledger.info(f"Current fan speed(s): {'/'.join(map(str, speeds))} RPM")
                if not any(speeds):
                    ledger.warn("All fans report 0 RPM - may be stuck or off")
        else:
            ledger.info("Fan sensor count unclear (normal for some models)")
    else:
        _no_fans(ctx)

    console.subsection("Temperature Sensors")
    sensors = count_matching(ioreg, r"Temperature|Temp|thermal", 0)
    grade(ledger, sensors, config.TEMP_SENSOR_BANDS, compare=config.TEMP_SENSOR_COMPARE)

    ledger.add_manual_check("During stress test: Verify fans spin up smoothly")
    ledger.add_manual_check("Check for unusual heat spots on case bottom")


def _no_fans(ctx):
    ledger, caps, model = ctx.ledger, ctx.caps, ctx.identity.model or ""
    if caps.device_type == "laptop" and "MacBook Air" in model and caps.apple_silicon:
        ledger.info("Fanless design (Apple Silicon MacBook Air)")
    elif caps.device_type == "laptop":
        ledger.warn("Fan information not detected - may indicate sensor issue")
    elif caps.device_type == "desktop":
        ledger.info(f"Fan sensors not enumerated (normal for {model or 'this model'})")
        ledger.add_manual_check("Listen for fan noise during stress test")
    else:
        ledger.warn("Fan information not detected")
