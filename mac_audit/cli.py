# mac_audit/cli.py
# Usage: mac-audit [--quick] [--no-report] [--verbose]
#        python -m mac_audit
#
# Output (Desktop by default, or $MAC_AUDIT_REPORT_DIR):
#   MacAudit_YYYYMMDD_HHMMSS.txt

import argparse
import atexit
import logging
import platform
import shutil
import sys

from . import config
from .cache import AcquisitionCache
from .config import Options
from .console import Console
from .errors import PrerequisiteError
from .ledger import Ledger
from .phases import PHASES
from .pipeline import PhaseContext, Pipeline
from .probe import CapabilityProbe, detect_capabilities, detect_identity
from .report import build_report_text, render_summary, report_path, runtime_snapshot, write_report
from .stress import WorkerRegistry
from .utils import HostFiles, TempArtifacts, run_cmd, start_background

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PREREQUISITE = 1


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        prog="mac-audit",
        description="Read-only audit of a used Mac before purchase.",
    )
    ap.add_argument("--quick", action="store_true", help="skip the CPU stress test")
    ap.add_argument("--no-report", action="store_true", help="do not write the report file")
    ap.add_argument("--verbose", action="store_true", help="show extra detail and debug logs")
    # Unknown flags are ignored rather than rejected.
    args, unknown = ap.parse_known_args(argv)
    return Options(quick=args.quick, no_report=args.no_report, verbose=args.verbose), unknown


def run(options, console=None, runner=run_cmd, host=None, launcher=start_background,
        env=None, machine=platform.machine, which=shutil.which, snapshot=runtime_snapshot):
    console = console or Console()
    host = host or HostFiles()
    ledger = Ledger(echo=console.say, verbose=options.verbose)
    cache = AcquisitionCache(runner=runner)

    console.section(f"{config.TOOL_NAME} v{config.TOOL_VERSION}")
    console.status("Initializing forensic audit sequence...")

    console.section("PREREQUISITES")
    probe = CapabilityProbe(cache, ledger, console, options, runner=runner,
                            which=which, machine=machine, host=host, env=env)
    try:
        result = probe.run()
    except PrerequisiteError as e:
        console.status(f"ERROR: {e.message}")
        if e.hint:
            console.status(e.hint)
        return EXIT_PREREQUISITE

    console.status("Caching system data (this takes a moment)...")
    statuses = cache.prefetch(progress=lambda name: console.progress(f"Reading {name}"))
    log.debug("prefetch: %s", statuses)

    identity = detect_identity(cache, result.os_version)
    caps = detect_capabilities(identity, cache, result.arch)

    artifacts = TempArtifacts()
    workers = WorkerRegistry()
    atexit.register(workers.drain)
    atexit.register(artifacts.cleanup)

    ctx = PhaseContext(cache=cache, caps=caps, identity=identity, ledger=ledger,
                       console=console, options=options, host=host, runner=runner,
                       launcher=launcher, artifacts=artifacts, workers=workers)
    pipeline = Pipeline(ctx)

    try:
        with workers:
            pipeline.run(PHASES)
    except KeyboardInterrupt:
        console.say("")
        ledger.info("Audit interrupted by operator - remaining phases not run")
        ledger.add_manual_check("Re-run the audit to complete all phases")
    finally:
        artifacts.cleanup()
        atexit.unregister(workers.drain)
        atexit.unregister(artifacts.cleanup)

    console.section("AUDIT SUMMARY & RISK ASSESSMENT")
    verdict = render_summary(ledger, console, caps.apple_silicon)

    if result.report_path:
        console.say("")
        console.status("Saving forensic report...")
        text = build_report_text(ledger, identity, pipeline.errors,
                                 snapshot() if snapshot else None, verdict=verdict)
        write_report(report_path(result.report_path), text, console)

    if pipeline.errors:
        console.status(f"Completed with {len(pipeline.errors)} phase error(s). See the report.")
    console.section("AUDIT COMPLETE. TRUST NO ONE. VERIFY EVERYTHING.")
    return EXIT_OK


def main(argv=None):
    options, unknown = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if unknown:
        log.debug("ignoring unknown arguments: %s", " ".join(unknown))
    return run(options)


if __name__ == "__main__":
    sys.exit(main())
