# model.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Union

from .container import Vec

# Reserved argument-template tokens
IN = "\x01"   # every command-line input, one argv element each
OUT = "\x02"  # the step's output path

PathLike = Union[str, "os.PathLike[str]"]
MtimeFn = Callable[[str], Optional[int]]


def file_mtime(path: str) -> Optional[int]:
    """Modification time in nanoseconds, or None if the path doesn't exist."""
    try:
        return os.stat(path).st_mtime_ns
    except (FileNotFoundError, NotADirectoryError):
        return None


@dataclass(frozen=True)
class Input:
    """A declared input path. `contributes` inputs are passed on the command line."""
    path: str
    contributes: bool = True


@dataclass(eq=False)
class Step:
    """
    One buildable unit: command + output + inputs + dependencies + argument templates.

    Identity is object identity. Two steps with the same command and output are
    still two different steps (the planner rejects that at build time).
    """
    command: str
    output: str

    arguments: Vec[str] = field(default_factory=lambda: Vec(str), repr=False)
    inputs: Vec[Input] = field(default_factory=lambda: Vec(Input), repr=False)
    dependencies: Vec["Step"] = field(default_factory=lambda: Vec(Step), repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "command", _require_str("command", self.command))
        object.__setattr__(self, "output", _require_str("output", self.output))

    # ---- command/output are fixed once created ----
    def __setattr__(self, name: str, value) -> None:
        if name in ("command", "output") and name in self.__dict__:
            raise AttributeError(f"Step.{name} cannot be changed after creation")
        super().__setattr__(name, value)

    # ------------------------------------------------------------------
    # Graph construction
    # ------------------------------------------------------------------

    def add_argument(self, template: str) -> "Step":
        if not isinstance(template, str):
            raise TypeError(f"argument template must be str, got {type(template).__name__}")
        self.arguments.push(template)
        return self

    def add_input(self, path: PathLike) -> "Step":
        self.inputs.push(Input(_require_str("input", path), contributes=True))
        return self

    def add_dependency(self, dependency: Union[PathLike, "Step"]) -> "Step":
        """
        A path becomes a dependency-only input (staleness, never argv).
        A Step is built before this one.
        """
        if isinstance(dependency, Step):
            if dependency is self:
                raise ValueError(f"step {self.output!r} cannot depend on itself")
            self.dependencies.push(dependency)
        else:
            self.inputs.push(Input(_require_str("dependency", dependency), contributes=False))
        return self

    # ------------------------------------------------------------------
    # Derived behavior
    # ------------------------------------------------------------------

    @property
    def command_inputs(self) -> List[str]:
        return [i.path for i in self.inputs if i.contributes]

    @property
    def label(self) -> str:
        return self.output

    def is_stale(self, mtime: MtimeFn = file_mtime) -> bool:
        """
        True if the output is missing, or any declared input is strictly newer.

        Dependency steps don't count here: a parent has to declare a
        dependency's output as one of its inputs to be invalidated by it.
        """
        out_ts = mtime(self.output)
        if out_ts is None:
            return True
        return any((mtime(i.path) or 0) > out_ts for i in self.inputs)

    def expand_arguments(self) -> List[str]:
        ins = self.command_inputs
        argv: List[str] = []
        for template in self.arguments:
            argv.extend(expand_template(template, ins, self.output))
        return argv

    def argv(self) -> List[str]:
        return [self.command, *self.expand_arguments()]

    def __repr__(self) -> str:
        return f"Step(command={self.command!r}, output={self.output!r})"


def expand_template(template: str, inputs: Iterable[str], output: str) -> List[str]:
    """
    Expand one argument template into argv elements.

    Whitespace separates elements (no quoting). IN and OUT always expand to
    standalone elements: "-o" directly followed by OUT gives ["-o", output],
    never "-o<output>".
    """
    out: List[str] = []
    pending: List[str] = []

    def flush() -> None:
        if pending:
            out.append("".join(pending))
            pending.clear()

    for ch in template:
        if ch == IN:
            flush()
            out.extend(inputs)
        elif ch == OUT:
            flush()
            out.append(output)
        elif ch.isspace():
            flush()
        else:
            pending.append(ch)
    flush()
    return out


def _require_str(what: str, value) -> str:
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a str or path, got {type(value).__name__}")
    if not value:
        raise ValueError(f"{what} must not be empty")
    return value
