#!/usr/bin/env python3
"""
Sequential phase runner.

The pipeline is a fixed, ordered list of phases. Each phase is either skipped
(its predicate is true for the current context) or executed to completion
before the next one starts. The first failure stops the run: later phases
never execute and nothing already done is undone.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

from .console import Console
from .errors import PhaseError

C = TypeVar('C')


@dataclass(frozen=True)
class Phase(Generic[C]):
    name: str
    run: Callable[[C], None]
    skip: Callable[[C], bool] | None = None


@dataclass
class RunSummary:
    run_id: str
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: str | None = None
    duration_seconds: int = 0


class PhaseScheduler(Generic[C]):
    """Execute phases strictly in order against one shared context."""

    def __init__(self, phases: Sequence[Phase[C]], console: Console, run_id: str | None = None) -> None:
        self.phases = list(phases)
        self.console = console
        self.summary = RunSummary(run_id=run_id or uuid.uuid4().hex[:8])

    def run(self, context: C) -> RunSummary:
        start = time.time()
        total = len(self.phases)
        try:
            for index, phase in enumerate(self.phases, start=1):
                try:
                    if phase.skip is not None and phase.skip(context):
                        self.console.info(f"Skipping phase {index}/{total}: {phase.name}")
                        self.summary.skipped.append(phase.name)
                        continue

                    self.console.banner(f"▶ PHASE {index}/{total}: {phase.name}")
                    phase.run(context)
                except Exception as e:
                    self.summary.failed = phase.name
                    raise PhaseError(phase.name, e) from e
                self.summary.executed.append(phase.name)
                self.console.success(f"✓ COMPLETED: {phase.name}")
        finally:
            self.summary.duration_seconds = int(time.time() - start)
        return self.summary
