# mac_audit/pipeline.py
# Runs the audit phases in their fixed order. A phase that blows up is
# recorded and skipped; it never ends the run.

import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable

from .stress import WorkerRegistry
from .utils import HostFiles, TempArtifacts, now_str, run_cmd, start_background

log = logging.getLogger(__name__)


@dataclass
class PhaseContext:
    cache: Any
    caps: Any
    identity: Any
    ledger: Any
    console: Any
    options: Any
    host: HostFiles = field(default_factory=HostFiles)
    runner: Callable = run_cmd
    launcher: Callable = start_background
    artifacts: TempArtifacts = field(default_factory=TempArtifacts)
    workers: WorkerRegistry = field(default_factory=WorkerRegistry)


class Pipeline:

    def __init__(self, ctx, errors=None):
        self.ctx = ctx
        self.errors = [] if errors is None else errors

    def log_error(self, stage, err, detail=None):
        item = {"time": now_str(), "stage": stage, "error": str(err)}
        if detail:
            item["detail"] = detail
        self.errors.append(item)
        log.error("phase %s failed: %s", stage, err)
        if detail:
            log.debug(detail)

    def safe_call(self, stage, fn, default=None):
        try:
            return fn(self.ctx)
        except Exception as e:
            self.log_error(stage, e, traceback.format_exc())
            self.ctx.ledger.info(f"{stage}: check could not complete ({e})")
            self.ctx.ledger.add_manual_check(f"Re-check manually: {stage}")
            return default

    def run(self, phases):
        for title, fn in phases:
            self.ctx.console.section(title)
            self.safe_call(title, fn)
        return self.errors
