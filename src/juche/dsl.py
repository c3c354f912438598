# src/juche/dsl.py
from __future__ import annotations

from typing import Iterable, List, Union

from .model import PathLike, Step


# ---------------------------------------------------------------------
# Core construction API
# ---------------------------------------------------------------------

def new_step(command: str, output: PathLike) -> Step:
    """Create a step with no arguments, inputs or dependencies."""
    return Step(command=command, output=output)


def add_argument(step: Step, template: str) -> Step:
    return step.add_argument(template)


def add_input(step: Step, path: PathLike) -> Step:
    return step.add_input(path)


def add_dependency(step: Step, dependency: Union[PathLike, Step]) -> Step:
    """Path -> dependency-only input. Step -> built first."""
    return step.add_dependency(dependency)


# ---------------------------------------------------------------------
# Functional step helper (one call per step)
# ---------------------------------------------------------------------

def step(
    command: str,
    output: PathLike,
    *arguments: str,  # allow: step("cc", "app", "-o", OUT, IN)
    inputs: Iterable[PathLike] = (),
    depends: Iterable[PathLike] = (),
    after: Iterable[Step] = (),
) -> Step:
    """
    Create a fully populated step.

    `inputs` go on the command line, `depends` are dependency-only paths,
    `after` are steps that must be built first.
    """
    s = new_step(command, output)
    for template in arguments:
        s.add_argument(template)
    for path in inputs:
        s.add_input(path)
    for path in depends:
        s.add_dependency(path)
    for dep in after:
        s.add_dependency(dep)
    return s


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class StepBuilder:
    def __init__(self, command: str, output: PathLike):
        self.command = command
        self.output = output
        self._arguments: list[str] = []
        self._inputs: list[PathLike] = []
        self._depends: list[PathLike] = []
        self._after: list[Step] = []

    def arg(self, *templates: str):
        self._arguments.extend(templates)
        return self

    def input(self, *paths: PathLike):
        self._inputs.extend(paths)
        return self

    def depends_on(self, *paths: PathLike):
        self._depends.extend(paths)
        return self

    def after(self, *steps: Step):
        self._after.extend(steps)
        return self

    def build(self) -> Step:
        return step(
            self.command,
            self.output,
            *self._arguments,
            inputs=self._inputs,
            depends=self._depends,
            after=self._after,
        )


def builder(command: str, output: PathLike) -> StepBuilder:
    """Convenience: builder('cc', 'a.o').arg('-c', IN).input('a.c').build()"""
    return StepBuilder(command, output)


# ---------------------------------------------------------------------
# Build script helper
# ---------------------------------------------------------------------

def targets(*steps: Step) -> List[Step]:
    """
    Root steps of a build script.

        from juche import targets, step, IN, OUT

        def build_targets():
            return targets(step("cc", "app", "-o", OUT, IN, inputs=["main.c"]))

    Or define them directly:
        TARGETS = targets(app)
    """
    for s in steps:
        if not isinstance(s, Step):
            raise TypeError(f"targets() takes Step values, got {type(s).__name__}")
    return list(steps)
