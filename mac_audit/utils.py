# mac_audit/utils.py
# Shared helpers: time stamps, report location, command execution,
# host filesystem access and temporary artifacts.

import os
import subprocess
import tempfile
import time
from datetime import datetime
from pathlib import Path

import psutil

# Force POSIX locale for every child so system tools print English labels.
CHILD_ENV = dict(os.environ, LC_ALL="C", LANG="C")


# -----------------------------
# Time
# -----------------------------
def now_str():
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def ts_compact():
    return datetime.now().strftime("%Y%m%d_%H%M%S")


# -----------------------------
# Report location
# -----------------------------
def desktop_path():
    p = os.path.join(os.path.expanduser("~"), "Desktop")
    return p if os.path.isdir(p) else os.getcwd()


def report_dir(env=None):
    """
    Where the report goes: MAC_AUDIT_REPORT_DIR if set, else the Desktop,
    else the working directory. Returns (path, writable).
    """
    env = os.environ if env is None else env
    p = env.get("MAC_AUDIT_REPORT_DIR") or desktop_path()
    return p, os.path.isdir(p) and os.access(p, os.W_OK)


# -----------------------------
# Commands
# -----------------------------
def run_cmd(cmd, timeout=25):
    """
    Run a command and return dict result (never throws).
    Output is decoded as UTF-8 with undecodable bytes replaced.
    """
    try:
        p = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=CHILD_ENV,
            shell=isinstance(cmd, str),
        )
        return {
            "ok": p.returncode == 0,
            "stdout": (p.stdout or "").strip(),
            "stderr": (p.stderr or "").strip(),
            "returncode": p.returncode,
            "cmd": cmd if isinstance(cmd, str) else " ".join(cmd),
        }
    except Exception as e:
        return {
            "ok": False,
            "stdout": "",
            "stderr": str(e),
            "returncode": -1,
            "cmd": cmd if isinstance(cmd, str) else " ".join(cmd),
        }


def start_background(cmd):
    """Start a detached helper (sound playback, browser). None if it cannot start."""
    try:
        return psutil.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            env=CHILD_ENV,
        )
    except (OSError, ValueError):
        return None


def stop_background(proc):
    if proc is None:
        return
    try:
        proc.terminate()
        proc.wait(timeout=1)
    except psutil.NoSuchProcess:
        pass
    except psutil.TimeoutExpired:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass


def run_bounded(cmd, artifacts, name, wait=5, poll=1.0):
    """
    Run a slow query detached with stdout captured in a named temporary file.
    Returns the captured text, or None when the wait expires (the process is
    killed and the file discarded).
    """
    path = artifacts.path(name)
    try:
        with open(path, "w", encoding="utf-8") as out:
            proc = psutil.Popen(
                list(cmd),
                stdin=subprocess.DEVNULL,
                stdout=out,
                stderr=subprocess.DEVNULL,
                env=CHILD_ENV,
            )
    except OSError:
        artifacts.discard(path)
        return ""

    deadline = time.monotonic() + wait
    try:
        while proc.poll() is None and time.monotonic() < deadline:
            time.sleep(poll)
    finally:
        # Never leave the query running, even when the wait is interrupted.
        timed_out = proc.poll() is None
        if timed_out:
            stop_background(proc)

    if timed_out:
        artifacts.discard(path)
        return None

    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        text = ""
    artifacts.discard(path)
    return text


# -----------------------------
# Temporary artifacts
# -----------------------------
class TempArtifacts:
    """Named scratch files owned by this run, removed on every exit path."""

    def __init__(self, directory=None, tag=None):
        self.directory = directory or tempfile.gettempdir()
        self.tag = tag or str(os.getpid())
        self._paths = []

    def path(self, name, suffix=""):
        p = os.path.join(self.directory, f".mac_audit_{name}_{self.tag}{suffix}")
        if p not in self._paths:
            self._paths.append(p)
        return p

    def discard(self, path):
        try:
            os.remove(path)
        except OSError:
            pass
        if path in self._paths:
            self._paths.remove(path)

    def cleanup(self):
        for p in list(self._paths):
            self.discard(p)

    def __len__(self):
        return len(self._paths)


# -----------------------------
# Host filesystem
# -----------------------------
class HostFiles:
    """
    Read-only view of the inspected host's files. Absolute paths are
    resolved against `root`, "~" against `home`.
    """

    def __init__(self, root="/", home=None):
        self.root = Path(root)
        self.home = Path(home or os.path.expanduser("~"))

    def resolve(self, path):
        if path.startswith("~"):
            return self.home / path[2:]
        return self.root / path.lstrip("/")

    def exists(self, path):
        return self.resolve(path).exists()

    def is_file(self, path):
        return self.resolve(path).is_file()

    def existing(self, paths):
        return [p for p in paths if self.exists(p)]

    def mtime(self, path):
        try:
            return self.resolve(path).stat().st_mtime
        except OSError:
            return None

    def find(self, directory, pattern):
        """(mtime, path) pairs under `directory` matching `pattern`, newest first."""
        base = self.resolve(directory)
        if not base.is_dir():
            return []
        found = []
        for p in base.rglob(pattern):
            try:
                if p.is_file():
                    found.append((p.stat().st_mtime, p))
            except OSError:
                continue
        found.sort(key=lambda item: item[0], reverse=True)
        return found

    def head(self, path, lines=100):
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return "".join(f.readline() for _ in range(lines))
        except OSError:
            return ""


def bytes_to_gb(b):
    try:
        return round(b / (1000 ** 3), 1)
    except Exception:
        return None
