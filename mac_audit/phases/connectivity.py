# mac_audit/phases/connectivity.py

import re

from .. import models
from ..parsers import contains, count_matching, field, lines_matching


def hardware_port_device(listing, port_regex):
    """Device name (en0, ...) listed right after a matching "Hardware Port:" line."""
    lines = (listing or "").splitlines()
    for i, line in enumerate(lines):
        if re.match(r"Hardware Port: (%s)" % port_regex, line):
            for follow in lines[i + 1:i + 2]:
                if follow.startswith("Device:"):
                    return follow.split(":", 1)[1].strip()
    return ""


def check_ports_connectivity(ctx):
    _usb_thunderbolt(ctx)
    ssid = _wireless(ctx)
    _ethernet(ctx)

    ledger, model_id = ctx.ledger, ctx.identity.model_id
    if ssid:
        ledger.add_manual_check("Test WiFi speed: Run a speed test to verify full functionality")
    for table in (models.HEADPHONE_CHECKS, models.SD_SLOT_CHECKS):
        item = models.first_match(model_id, table)
        if item:
            ledger.add_manual_check(item)


def _usb_thunderbolt(ctx):
    ledger, console = ctx.ledger, ctx.console
    console.subsection("USB & Thunderbolt")

    controllers = count_matching(ctx.cache.get("usb"), r"Host Controller", 0)
    if controllers > 0:
        ledger.passed(f"USB controllers: {controllers}")

    tb = ctx.cache.get("thunderbolt")
    ports = count_matching(tb, r"Port:", 0)
    if ports > 0:
        ledger.info(f"Thunderbolt/USB-C ports detected: {ports}")
        expected = models.EXPECTED_PORTS.get(ctx.identity.model_id, 0)
        if expected and ports < expected:
            ledger.warn(f"Expected {expected} ports for this model, found {ports}")
            console.say("    Some ports may be damaged or detection failed.")
        elif expected and ports == expected:
            ledger.passed("Port count matches expected for this model")

    if contains(tb, r"Thunderbolt"):
        version = next((l.split(":", 1)[1].strip() for l in lines_matching(tb, r"version")
                        if ":" in l), "")
        suffix = f" (v{version})" if version else ""
        ledger.passed(f"Thunderbolt: Available{suffix}")

    ledger.add_manual_check("Test ALL USB-C/Thunderbolt ports with a device")
    ledger.add_manual_check("Test charging from each USB-C port")


def _wireless(ctx):
    ledger, console = ctx.ledger, ctx.console

    console.subsection("Bluetooth")
    if contains(ctx.cache.get("bluetooth"), r"Bluetooth"):
        ledger.passed("Bluetooth: Available")
        ledger.add_manual_check("Test Bluetooth: Pair a device")
    else:
        ledger.warn("Bluetooth: Not detected")

    console.subsection("WiFi")
    wifi = ctx.cache.get("wifi")
    if contains(wifi, r"Wi-Fi|AirPort"):
        ledger.passed("WiFi: Available")
        modes = field(wifi, "Supported PHY Modes")
        if modes:
            ledger.info(f"Standards: {modes}")
    else:
        ledger.warn("WiFi: Not detected")

    device = hardware_port_device(ctx.cache.get("hardware_ports"), r"Wi-Fi|AirPort")
    if not device:
        return ""

    out = ctx.runner(["networksetup", "-getairportnetwork", device], timeout=10)["stdout"]
    if "Current Wi-Fi Network:" in out:
        ssid = out.split("Current Wi-Fi Network:", 1)[1].strip()
        ledger.passed(f"Connected to: {ssid} (WiFi verified working)")
        return ssid
    if contains(out, r"not associated|off|disabled"):
        ledger.info("WiFi: Not currently connected")
        ledger.add_manual_check("IMPORTANT: Connect to WiFi and verify it works before purchase")
    return ""


def _ethernet(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("Ethernet")

    device = hardware_port_device(ctx.cache.get("hardware_ports"), r"Ethernet")
    if device:
        ledger.passed(f"Ethernet port: Present ({device})")
        status = field(ctx.runner(["ifconfig", device], timeout=10)["stdout"], "status:")
        if status == "active":
            ledger.info("Ethernet status: Connected")
        else:
            ledger.info("Ethernet status: Not connected (normal if using WiFi)")
        ledger.add_manual_check("Test Ethernet: Connect cable, verify network access")
    elif any(name in (ctx.identity.model or "") for name in models.ETHERNET_MODELS):
        ledger.warn("Ethernet port not detected (expected on this model)")
        ledger.add_manual_check("Verify Ethernet port functionality with cable")
    else:
        ledger.info("No built-in Ethernet (normal for MacBooks)")
