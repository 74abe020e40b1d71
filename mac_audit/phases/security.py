# mac_audit/phases/security.py

from .. import config
from ..parsers import contains, lines_matching


def check_security_posture(ctx):
    ledger, console, cache = ctx.ledger, ctx.console, ctx.cache
    apple_silicon = ctx.caps.apple_silicon

    console.subsection("System Integrity Protection (SIP)")
    sip = cache.get("sip")
    if contains(sip, r"enabled", 0):
        ledger.passed("SIP: Enabled (system protected)")
    elif contains(sip, r"disabled", 0):
        ledger.fail("SIP: DISABLED - System may be tampered!")
        console.say("    Disabled SIP could indicate jailbreak, malware, or mods.")
    else:
        ledger.warn("SIP: Status unclear")

    console.subsection("FileVault (Disk Encryption)")
    if contains(cache.get("filevault"), r"FileVault is On", 0):
        ledger.warn("FileVault: ENABLED (disk is encrypted)")
        console.say("    IMPORTANT: Get the FileVault recovery key before buying.")
        console.say("    Seller should: Settings > Apple ID > iCloud > Keys")
        ledger.add_manual_check("CRITICAL: Obtain FileVault recovery key from seller")
    else:
        ledger.info("FileVault: Disabled (normal for used Mac)")

    console.subsection("Gatekeeper (App Security)")
    if contains(cache.get("gatekeeper"), r"assessments enabled", 0):
        ledger.passed("Gatekeeper: Enabled")
    else:
        ledger.warn("Gatekeeper: Disabled")

    console.subsection("Application Firewall")
    if contains(cache.get("firewall"), r"enabled"):
        ledger.passed("Firewall: Enabled")
    else:
        ledger.info("Firewall: Disabled (common default)")

    console.subsection("Firmware Security")
    if apple_silicon:
        ledger.passed("Secure Enclave: Active (Apple Silicon)")
        ledger.info("Secure Boot: Always enabled on Apple Silicon")
        _boot_policy(ctx)
    else:
        if contains("\n".join(lines_matching(cache.get("ibridge"), r"Model Name")), r"T2"):
            ledger.passed("T2 Security Chip: Present")
            ledger.add_manual_check(
                "Verify no firmware password blocks boot options (hold Option on boot)")
        else:
            ledger.info("T2 Chip: Not present (older Intel Mac)")
        _firmware_password(ctx)
        _boot_rom(ctx)

    _xprotect(ctx)
    _tampering(ctx)


def _nvram_value(nvram, key):
    for line in lines_matching(nvram, key):
        if "\t" in line:
            return line.split("\t", 1)[1].strip()
    return ""


def _boot_policy(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("Secure Boot Policy (Apple Silicon)")

    found = lines_matching(ctx.cache.get("boot_policy"), r"security mode")
    if not found:
        mode = "\n".join(lines_matching(ctx.cache.get("nvram"), r"boot-policy"))
        if not mode or contains(mode, r"full"):
            ledger.passed("Secure Boot: Full Security (default)")
        else:
            ledger.warn("Secure Boot: Non-standard policy detected")
        return

    policy = found[0].strip()
    if contains(policy, r"full"):
        ledger.passed("Secure Boot: Full Security (default)")
    elif contains(policy, r"reduced"):
        ledger.warn("Secure Boot: Reduced Security")
        ctx.console.say("    Allows third-party kernel extensions. Ask why.")
    elif contains(policy, r"permissive"):
        ledger.fail("Secure Boot: Permissive Security (lowest)")
        ctx.console.say("    Allows unsigned code. May indicate jailbreak!")
    else:
        ledger.info(f"Secure Boot: {policy}")


def _firmware_password(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("Firmware Password (Intel)")

    mode = _nvram_value(ctx.cache.get("nvram"), r"security-mode")
    if mode in ("full", "command"):
        ledger.fail(f"Firmware Password: ENABLED ({mode} mode)")
        ctx.console.say("    Cannot boot external media or access Recovery freely.")
        ctx.console.say("    Seller MUST remove this before purchase!")
    elif mode in ("none", ""):
        ledger.passed("Firmware Password: Not set")
    else:
        ledger.warn(f"Firmware Password: Unknown status ({mode})")
        ledger.add_manual_check("Verify firmware password: Restart with Option key held")


def _boot_rom(ctx):
    ctx.console.subsection("Boot ROM / EFI Firmware")
    rom = ""
    found = lines_matching(ctx.cache.get("hardware"), r"Boot ROM|System Firmware")
    if found and ":" in found[0]:
        # Keep nested colons: "2094.40.1.0.0 (iBridge: 22.16.12077.0.0,0)"
        rom = found[0].split(":", 1)[1].strip()

    if rom:
        if len(rom) > 60:
            rom = rom[:57] + "..."
        ctx.ledger.info(f"Boot ROM: {rom}")
    else:
        ctx.ledger.info("Boot ROM: Could not be determined")
        ctx.ledger.note("This may be normal on some Mac configurations")


def _xprotect(ctx):
    ledger = ctx.ledger
    ctx.console.subsection("Malware Definitions (XProtect)")

    # The bundle moved in macOS 12 and again in macOS 15.
    plist = next((p for p in config.XPROTECT_PLISTS if ctx.host.is_file(p)), None)
    if plist is None:
        ledger.warn("XProtect: Not found or not accessible")
        return

    r = ctx.runner([config.PLIST_BUDDY, "-c", "Print :Version", str(ctx.host.resolve(plist))],
                   timeout=10)
    version = r["stdout"] if r["ok"] else ""
    if version:
        ledger.passed(f"XProtect Version: {version}")
    else:
        ledger.info("XProtect: Installed (version not readable)")


def _tampering(ctx):
    ctx.console.subsection("Tampering Indicators")
    found = ctx.host.existing(config.TAMPERING_PATHS)
    for path in found:
        ctx.ledger.fail(f"Suspicious file: {path}")
    if not found:
        ctx.ledger.passed("No common tampering indicators found")
