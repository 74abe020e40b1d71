# mac_audit/console.py
# Operator I/O: section banners, free-text entry and single-keystroke reads.

import os
import select
import sys
import time

try:
    import termios
    import tty
except ImportError:  # non-POSIX host; keystrokes fall back to line input
    termios = None
    tty = None


class Console:
    """
    Terminal front-end. Every raw keystroke read is preceded by an explicit
    reset of the input queue so keys buffered by earlier prompts are never
    taken as the answer.
    """

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    # -----------------------------
    # Output
    # -----------------------------
    def say(self, text=""):
        print(text, file=self.stdout, flush=True)

    def status(self, text):
        self.say(f"[mac_audit] {text}")

    def section(self, title):
        self.say("")
        self.say("=" * 64)
        self.say(f"  {title}")
        self.say("=" * 64)

    def subsection(self, title):
        self.say(f"  - {title}")

    def progress(self, text):
        self.stdout.write(f"  ... {text}\r")
        self.stdout.flush()

    def countdown(self, remaining):
        self.stdout.write(f"\r  Stress Test: {remaining:02d} s remaining  (press any key to stop) ")
        self.stdout.flush()

    # -----------------------------
    # Input
    # -----------------------------
    def _tty(self):
        try:
            return termios is not None and os.isatty(self.stdin.fileno())
        except (AttributeError, ValueError, OSError):
            return False

    def flush_input(self):
        """Drop anything typed ahead of the next prompt."""
        if self._tty():
            termios.tcflush(self.stdin.fileno(), termios.TCIFLUSH)

    def ask_text(self, prompt):
        self.say(prompt)
        try:
            return self.stdin.readline().rstrip("\n")
        except (OSError, ValueError):
            return ""

    def pause(self, prompt):
        self.ask_text(prompt)

    def ask_key(self, prompt):
        """Single keystroke after flushing the input queue. "" on EOF."""
        self.flush_input()
        self.say(prompt)
        if not self._tty():
            line = self.stdin.readline()
            return line[:1] if line else ""
        fd = self.stdin.fileno()
        old = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            key = os.read(fd, 1).decode(errors="replace")
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old)
        self.say("")
        return key

    def ask_yes_no(self, prompt):
        """'y', 'n' or None for anything else."""
        key = self.ask_key(f"    ? {prompt} [y/n] ").lower()
        return key if key in ("y", "n") else None

    def poll_key(self, timeout):
        """Wait up to `timeout` seconds for a keystroke; the key or None."""
        if not self._tty():
            if not self._selectable():
                time.sleep(timeout)
                return None
            ready, _, _ = select.select([self.stdin], [], [], timeout)
            if not ready:
                return None
            line = self.stdin.readline()
            if not line:
                # EOF stays readable; wait out the tick instead of spinning.
                time.sleep(timeout)
                return None
            return line[:1]
        fd = self.stdin.fileno()
        old = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            ready, _, _ = select.select([fd], [], [], timeout)
            if not ready:
                return None
            return os.read(fd, 1).decode(errors="replace")
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old)

    def _selectable(self):
        try:
            self.stdin.fileno()
            return True
        except (AttributeError, ValueError, OSError):
            return False
