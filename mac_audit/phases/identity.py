# mac_audit/phases/identity.py
# Phases 1-2: engraved serial against the logic board, then the identity block.

from .. import config
from ..parsers import field, normalize_serial, registry_value

DEVICE_LABELS = {
    "laptop": "Laptop",
    "desktop": "Desktop",
    "all-in-one": "All-in-One",
}

SERIAL_LOCATIONS = (
    "MacBook: Bottom case, near regulatory markings",
    "iMac: Stand base or back panel lower edge",
    "Mac mini: Bottom plate",
    "Mac Studio: Bottom plate",
    "Mac Pro: Top case handle or back panel",
)


def verify_physical_serial(ctx):
    """
    The operator types the serial engraved on the case; a mismatch with the
    logic board means the board was swapped or the device was assembled
    from parts.
    """
    ledger, console = ctx.ledger, ctx.console
    system_serial = ctx.identity.serial

    console.say("  Find the serial number ENGRAVED on the device:")
    for where in SERIAL_LOCATIONS:
        console.say(f"    * {where}")
    console.say("")

    if not system_serial:
        ledger.fail("Could not retrieve system serial number!")
        ledger.info("Open: Apple Menu > About This Mac > More Info > System Report")
        ledger.add_manual_check("CRITICAL: Manually verify serial via System Information app")
        ledger.add_manual_check("Compare with serial engraved on device case")
        return

    console.say(f"  System reports serial: {system_serial}")
    typed = normalize_serial(console.ask_text("  >> TYPE THE SERIAL FROM THE CASE: "))
    expected = normalize_serial(system_serial)

    if not typed:
        ledger.warn("No serial entered - comparison skipped")
        ledger.add_manual_check(f"CRITICAL: Compare case serial with {system_serial}")
        return

    if not config.SERIAL_MIN_LENGTH <= len(typed) <= config.SERIAL_MAX_LENGTH:
        ledger.warn(f"Entered serial has unusual length ({len(typed)} characters)")
        ledger.info("Apple serials are typically 11-12 characters")

    if typed == expected:
        ledger.passed("SERIAL MATCH - Logic board and case are properly paired")
        return

    ledger.fail("SERIAL MISMATCH - Logic board may have been swapped!")
    console.say("")
    console.say("    The logic board serial does NOT match the case serial. Possible causes:")
    console.say("      * Stolen logic board in a legitimate case")
    console.say("      * Blacklisted device in disguise")
    console.say("      * Undisclosed repair or refurbishment")
    console.say("      * Parts Mac assembled from multiple devices")
    console.say("    Do not purchase unless the seller can explain this.")
    console.pause("  Press [ENTER] to acknowledge this risk and continue...")


def check_system_identity(ctx):
    ledger, ident, caps = ctx.ledger, ctx.identity, ctx.caps

    label = DEVICE_LABELS.get(caps.device_type, "Unknown")
    ledger.info(f"Model:      {ident.model or 'Unknown'} [{label}]")
    ledger.info(f"Identifier: {ident.model_id or 'Unknown'}")
    ledger.info(f"Chip/CPU:   {ident.chip or 'Unknown'}")
    ledger.info(f"Memory:     {ident.memory or 'Unknown'}")

    memory = ctx.cache.get("memory")
    ram_type = field(memory, "Type:")
    ram_speed = field(memory, "Speed:")
    if ram_type:
        detail = f"{ram_type} @ {ram_speed}" if ram_speed else ram_type
        ledger.info(f"RAM Type:   {detail}")
        if "LPDDR" in ram_type:
            ledger.info("RAM Note:   Soldered (not upgradeable)")

    ledger.info(f"Serial:     {ident.serial or 'Unknown'}")

    if ident.uuid:
        ledger.passed(f"Hardware UUID: {ident.uuid[:8]}...")
        ledger.note(f"Full UUID: {ident.uuid}")
    else:
        ledger.warn("Hardware UUID not found")

    if ident.provisioning_udid:
        ledger.info(f"Prov. UDID: {ident.provisioning_udid[:12]}...")

    board_id = registry_value(ctx.cache.get("ioreg"), "board-id")
    if board_id:
        ledger.info(f"Board ID:   {board_id}")

    if caps.has_touch_bar:
        ledger.info("Touch Bar:  Present (2016-2020 MacBook Pro)")
        ledger.add_manual_check("Test Touch Bar: Volume slider, brightness, app controls")

    if caps.has_touch_id:
        ledger.info("Touch ID:   Hardware detected")
        ledger.add_manual_check("Test Touch ID: System Settings > Touch ID (requires user setup)")

    ledger.add_manual_check(
        f"Check warranty: https://checkcoverage.apple.com (Serial: {ident.serial})")
