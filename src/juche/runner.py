# runner.py
from __future__ import annotations

import os
import runpy
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .dag import plan
from .model import MtimeFn, Step, file_mtime
from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

TOOL_HINTS = {
    "cc": "Install a C compiler or fix PATH (cc).",
    "gcc": "Install GCC or fix PATH.",
    "clang": "Install clang or fix PATH.",
    "c++": "Install a C++ compiler or fix PATH (c++).",
    "ar": "Install binutils (ar) or fix PATH.",
    "ld": "Install binutils (ld) or fix PATH.",
    "make": "Install make or fix PATH.",
}


@dataclass(eq=False)
class BuildError(Exception):
    """
    A step's command failed.

      kind="exit":  the command ran and exited non-zero (exit_code is set)
      kind="spawn": the command could not be started (exit_code is None)
    """
    step: Step
    kind: str
    message: str
    exit_code: Optional[int] = None
    argv: List[str] = field(default_factory=list)
    hint: Optional[str] = None

    def __str__(self) -> str:
        if self.kind == "exit":
            return f"[{self.step.label}] command failed (exit={self.exit_code}): {self.message}"
        return f"[{self.step.label}] command could not be started: {self.message}"


# ----------------------------------------------------------------------
# Command runners
# ----------------------------------------------------------------------

class CommandRunner:
    """Runs one argv and returns its exit status."""

    def run(self, argv: Sequence[str]) -> int:
        raise NotImplementedError


class SubprocessCommandRunner(CommandRunner):
    """Runs the command synchronously, inheriting stdin/stdout/stderr."""

    def __init__(self, cwd: str | Path | None = None):
        self.cwd = cwd

    def run(self, argv: Sequence[str]) -> int:
        # OSError (missing binary, not executable) propagates to the builder
        proc = subprocess.run(
            list(argv),
            cwd=str(self.cwd) if self.cwd else None,
            check=False,
        )
        return proc.returncode


class RecordingCommandRunner(CommandRunner):
    """Dry run: records commands instead of executing them."""

    def __init__(self, exit_codes: Optional[Dict[str, int]] = None):
        self.commands: List[List[str]] = []
        # command name -> exit status to report (default 0)
        self.exit_codes = dict(exit_codes or {})

    def run(self, argv: Sequence[str]) -> int:
        self.commands.append(list(argv))
        return self.exit_codes.get(argv[0], 0)


# ----------------------------------------------------------------------
# Build report
# ----------------------------------------------------------------------

BUILT = "built"
UP_TO_DATE = "up-to-date"
FAILED = "failed"
BLOCKED = "blocked"
NOT_RUN = "not-run"
WOULD_BUILD = "would-build"  # stale step whose command was only recorded


@dataclass
class StepOutcome:
    step: Step
    status: str
    error: Optional[BuildError] = None


@dataclass
class BuildReport:
    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(o.status in (FAILED, BLOCKED, NOT_RUN) for o in self.outcomes)

    @property
    def failures(self) -> List[BuildError]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def built(self) -> List[Step]:
        return [o.step for o in self.outcomes if o.status == BUILT]

    def statuses(self) -> Dict[str, str]:
        """output -> last status recorded for it."""
        return {o.step.label: o.status for o in self.outcomes}

    def raise_for_failures(self) -> None:
        errors = self.failures
        if errors:
            raise errors[0]

    def merge(self, other: "BuildReport") -> None:
        self.outcomes.extend(other.outcomes)


# ----------------------------------------------------------------------
# Builder
# ----------------------------------------------------------------------

class Builder:
    """
    Plans and executes steps.

    Failure policy:
      keep_going=False (default): stop at the first failure; everything planned
        after it is reported as not-run.
      keep_going=True: keep building independent branches; steps that depend
        (directly or not) on a failed step are reported as blocked.

    With dry_run=True, stale steps that the runner accepts are reported as
    would-build instead of built.
    """

    def __init__(
        self,
        *,
        runner: Optional[CommandRunner] = None,
        console: Optional[Console] = None,
        keep_going: bool = False,
        memoize: bool = True,
        mtime: MtimeFn = file_mtime,
        dry_run: bool = False,
    ):
        self.runner = runner or SubprocessCommandRunner()
        self.console = console or get_console()
        self.keep_going = keep_going
        self.memoize = memoize
        self.mtime = mtime
        self.dry_run = dry_run

    def build(self, *roots: Step) -> BuildReport:
        order = plan(roots, memoize=self.memoize)
        report = BuildReport()
        # id(step) -> latest status; a step is only ever blocked by its own deps
        status: Dict[int, str] = {}
        aborted = False

        for step in order:
            if aborted:
                report.outcomes.append(StepOutcome(step, NOT_RUN))
                continue

            blocked_by = [
                d for d in step.dependencies
                if status.get(id(d)) in (FAILED, BLOCKED)
            ]
            if blocked_by:
                status[id(step)] = BLOCKED
                report.outcomes.append(StepOutcome(step, BLOCKED))
                self.console.print_step_blocked(step.label, blocked_by[0].label)
                continue

            outcome = self._evaluate(step)
            status[id(step)] = outcome.status
            report.outcomes.append(outcome)

            if outcome.status == FAILED and not self.keep_going:
                aborted = True

        return report

    def _evaluate(self, step: Step) -> StepOutcome:
        if not step.is_stale(self.mtime):
            self.console.print_up_to_date(step.label)
            return StepOutcome(step, UP_TO_DATE)

        argv = step.argv()
        self.console.print_command(argv)

        try:
            code = self.runner.run(argv)
        except OSError as e:
            err = BuildError(
                step=step,
                kind="spawn",
                message=f"{step.command}: {e.strerror or e}",
                argv=argv,
                hint=TOOL_HINTS.get(os.path.basename(step.command)),
            )
            self.console.print_failure(step.label, str(err), hint=err.hint)
            return StepOutcome(step, FAILED, err)

        if code != 0:
            err = BuildError(
                step=step,
                kind="exit",
                message=self.console.format_command(argv),
                exit_code=code,
                argv=argv,
            )
            self.console.print_failure(step.label, str(err), exit_code=code)
            return StepOutcome(step, FAILED, err)

        return StepOutcome(step, WOULD_BUILD if self.dry_run else BUILT)


def build(
    root: Step,
    *more: Step,
    runner: Optional[CommandRunner] = None,
    console: Optional[Console] = None,
    keep_going: bool = False,
    memoize: bool = True,
    mtime: MtimeFn = file_mtime,
) -> BuildReport:
    """Build `root` (and any further roots) and return the report. Never raises BuildError."""
    builder = Builder(
        runner=runner,
        console=console,
        keep_going=keep_going,
        memoize=memoize,
        mtime=mtime,
    )
    return builder.build(root, *more)


# ----------------------------------------------------------------------
# Build script loading (local file)
# ----------------------------------------------------------------------

def load_build_script(path: str | Path) -> List[Step]:
    """
    Load the root steps from a python build script.

    The file must define either:
      - build_targets() -> Step | List[Step]
      - TARGETS = [Step, ...]  (or a single Step)
    """
    script = Path(path).expanduser().resolve()
    if not script.exists():
        raise FileNotFoundError(f"Build script not found: {script}")
    if script.suffix != ".py":
        raise ValueError(f"Build script must be a .py file, got: {script.name}")

    module_name = f"juche_script_{script.stem}"
    globals_dict = runpy.run_path(str(script), run_name=module_name)

    roots = None
    if callable(globals_dict.get("build_targets")):
        roots = globals_dict["build_targets"]()
    elif "TARGETS" in globals_dict:
        roots = globals_dict["TARGETS"]

    if isinstance(roots, Step):
        roots = [roots]
    if not isinstance(roots, list) or not roots or not all(isinstance(s, Step) for s in roots):
        raise TypeError(
            "Build script must return/define a non-empty List[Step]. "
            "Define build_targets() -> List[Step] or TARGETS = [Step, ...]."
        )
    return roots


def select_targets(roots: Iterable[Step], outputs: Sequence[str]) -> List[Step]:
    """Pick roots by exact output path; no outputs means all roots."""
    roots = list(roots)
    if not outputs:
        return roots
    by_output = {s.output: s for s in roots}
    missing = [o for o in outputs if o not in by_output]
    if missing:
        raise ValueError(
            f"Unknown target(s): {missing}. Known targets: {sorted(by_output)}"
        )
    return [by_output[o] for o in outputs]
