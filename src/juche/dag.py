# dag.py
from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from .model import Step


class DependencyCycleError(ValueError):
    """A step (transitively) depends on itself."""

    def __init__(self, cycle: List[Step]):
        self.cycle = cycle
        path = " -> ".join(s.label for s in cycle)
        super().__init__(f"Dependency cycle detected: {path}")


class DuplicateOutputError(ValueError):
    """Two distinct steps declare the same output path."""

    def __init__(self, output: str, steps: Tuple[Step, Step]):
        self.output = output
        self.steps = steps
        super().__init__(
            f"Output {output!r} is declared by more than one step: "
            f"{steps[0]!r} and {steps[1]!r}"
        )


def build_order(root: Step, *, memoize: bool = True) -> List[Step]:
    """
    Dependency-first evaluation order for `root`.

    Depth-first, in declaration order, using an explicit worklist:
      - memoize=True: each step appears once, even when reachable by many paths
      - memoize=False: a shared dependency appears once per path that reaches it

    Raises DependencyCycleError before anything would run.
    """
    order: List[Step] = []
    done: Set[int] = set()
    on_path: Dict[int, Step] = {}  # insertion-ordered: the current DFS path

    # (step, expanded) -- expanded=True means its dependencies are already queued
    work: List[Tuple[Step, bool]] = [(root, False)]

    while work:
        step, expanded = work.pop()
        key = id(step)

        if expanded:
            on_path.pop(key, None)
            done.add(key)
            order.append(step)
            continue

        if memoize and key in done:
            continue
        if key in on_path:
            path = list(on_path.values())
            raise DependencyCycleError(path[path.index(step):] + [step])

        on_path[key] = step
        work.append((step, True))
        # reversed so the first declared dependency is popped first
        for dep in reversed(step.dependencies.snapshot()):
            if memoize and id(dep) in done:
                continue
            work.append((dep, False))

    return order


def check_outputs(steps: Iterable[Step]) -> None:
    """Raise DuplicateOutputError if two distinct steps share an output."""
    owners: Dict[str, Step] = {}
    for s in steps:
        seen = owners.setdefault(s.output, s)
        if seen is not s:
            raise DuplicateOutputError(s.output, (seen, s))


def plan(roots: Iterable[Step], *, memoize: bool = True) -> List[Step]:
    """
    Validated evaluation order for several roots, in root order.

    With memoize=True a step shared between roots is evaluated once.
    """
    ordered: List[Step] = []
    seen: Set[int] = set()
    for root in roots:
        for s in build_order(root, memoize=memoize):
            if memoize and id(s) in seen:
                continue
            seen.add(id(s))
            ordered.append(s)
    check_outputs(ordered)
    return ordered
