# mac_audit/stress.py
# CPU stress test: one busy-loop worker per logical core while the operator
# listens to the fans. Workers never outlive the phase, whatever ends it.

import logging
import signal
import subprocess
import sys
import threading
import time
from contextlib import contextmanager
from enum import Enum

import psutil

from . import config

log = logging.getLogger(__name__)

WORKER_COMMAND = (sys.executable, "-c", "while True:\n    pass")

STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class StressState(Enum):
    IDLE = "idle"
    PROMPTED = "prompted"
    SKIPPED = "skipped"
    RUNNING = "running"
    DRAINING = "draining"


class WorkerRegistry:
    """
    Every live worker handle. drain() may be called any number of times,
    from a signal handler or atexit, and always leaves the registry empty.
    """

    def __init__(self, grace=config.STRESS_GRACE_PERIOD, command=WORKER_COMMAND):
        self.grace = grace
        self.command = command
        self._procs = []

    def spawn(self, count):
        for _ in range(count):
            proc = psutil.Popen(
                list(self.command),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            self._procs.append(proc)
        log.debug("spawned %d stress workers", count)
        return len(self._procs)

    def pids(self):
        return [p.pid for p in self._procs]

    def drain(self):
        # Swap the list out first so a re-entrant call sees nothing to do.
        procs, self._procs = self._procs, []
        if not procs:
            return 0

        for p in procs:
            try:
                p.terminate()
            except psutil.NoSuchProcess:
                pass
        _, alive = psutil.wait_procs(procs, timeout=self.grace)
        for p in alive:
            try:
                p.kill()
            except psutil.NoSuchProcess:
                pass
        if alive:
            psutil.wait_procs(alive, timeout=self.grace)
        log.debug("drained %d stress workers (%d killed)", len(procs), len(alive))
        return len(procs)

    def __len__(self):
        return len(self._procs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.drain()
        return False


@contextmanager
def cancel_on_signals(token, on_signal=None, signals=STOP_SIGNALS):
    """Route stop signals to `token` (and `on_signal`) until the block exits."""
    previous = {}

    def handler(signum, frame):
        log.debug("signal %s received during stress test", signum)
        token.set()
        if on_signal is not None:
            on_signal()

    for sig in signals:
        try:
            previous[sig] = signal.signal(sig, handler)
        except (ValueError, OSError):
            # Only the main thread may install handlers.
            pass
    try:
        yield token
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


class StressTest:

    def __init__(self, ledger, console, options, registry=None,
                 duration=config.STRESS_TEST_DURATION, cores=None, device_type="unknown"):
        self.ledger = ledger
        self.console = console
        self.options = options
        self.registry = registry if registry is not None else WorkerRegistry()
        self.duration = duration
        self.cores = cores
        self.device_type = device_type
        self.token = threading.Event()
        self.state = StressState.IDLE
        self.history = [StressState.IDLE]

    def _enter(self, state):
        log.debug("stress test: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _banner(self, cores):
        say = self.console.say
        say("  *** THERMAL STRESS TEST ***")
        say(f"  Maxing out all {cores} CPU cores for {self.duration} seconds.")
        say("")
        say("  LISTEN FOR:")
        say("    * Fan noise (smooth whoosh = GOOD)")
        say("    * Grinding/Rattling (bearing failure = BAD)")
        say("    * High-pitched whine (coil whine = annoying but OK)")
        say("    * Silence + heat (dead fans = CRITICAL)")
        if self.device_type == "desktop":
            say("")
            say("  DESKTOP NOTE: Fans are internal - put your ear near the vents!")
        say("")

    def run(self):
        ledger = self.ledger
        if self.options.quick:
            ledger.info("Stress test skipped (--quick mode)")
            ledger.add_manual_check("Run stress test manually to check for fan noise/coil whine")
            return self.state

        cores = self.cores or psutil.cpu_count() or config.DEFAULT_CPU_CORES
        self._banner(cores)

        self._enter(StressState.PROMPTED)
        key = self.console.ask_key("  Press [ENTER] to start the turbine, [S] to skip this test.")
        if key.lower() == "s":
            self._enter(StressState.SKIPPED)
            ledger.info("Stress test skipped by user")
            ledger.add_manual_check("STRESS TEST: Open 3+ browser tabs with YouTube, run for 5+ minutes")
            ledger.add_manual_check("During stress: Listen for fan noise, check case temperature")
            self._enter(StressState.IDLE)
            return self.state

        self._enter(StressState.RUNNING)
        self.console.say("  >>> TURBINES ENGAGED. LISTEN CAREFULLY. <<<")
        started = time.monotonic()
        reason = "completed"
        try:
            with cancel_on_signals(self.token, self.registry.drain):
                try:
                    self.registry.spawn(cores)
                except OSError as e:
                    log.warning("could not start stress workers: %s", e)
                    reason = "failed"
                else:
                    reason = self._countdown()
        finally:
            self._enter(StressState.DRAINING)
            self.registry.drain()
            self._enter(StressState.IDLE)

        elapsed = int(time.monotonic() - started)
        self.console.say("")
        if reason == "failed":
            ledger.info("Stress test: load generators could not be started")
            ledger.add_manual_check("Run stress test manually to check for fan noise/coil whine")
        elif reason == "completed":
            ledger.info(f"Stress test finished: {cores} cores for {self.duration}s")
        else:
            ledger.info(f"Stress test stopped early ({reason}) after {elapsed}s")
        self.console.say("  Stress test finished. Silence restored.")
        return self.state

    def _countdown(self):
        for remaining in range(self.duration, 0, -1):
            if self.token.is_set():
                return "interrupted"
            self.console.countdown(remaining)
            if self.console.poll_key(1.0) is not None:
                return "operator"
        return "interrupted" if self.token.is_set() else "completed"


def run_stress_test(ctx):
    StressTest(ctx.ledger, ctx.console, ctx.options, registry=ctx.workers,
               device_type=ctx.caps.device_type).run()
