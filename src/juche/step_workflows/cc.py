# step_workflows/cc.py
from __future__ import annotations

import os
from typing import Iterable, List, Sequence

from ..dsl import step
from ..model import IN, OUT, PathLike, Step
from ..scanner import scan_auto_dependencies


# ---------------------------------------------------------------------
# C compile step helper
# ---------------------------------------------------------------------

def compile_step(
    source: PathLike,
    obj: PathLike | None = None,
    *,
    cc: str = "cc",
    flags: Sequence[str] = (),
    scan: bool = True,
) -> Step:
    """Compile one C source into an object file (`cc -c src -o obj flags...`)."""
    source = os.fspath(source)
    if obj is None:
        obj = os.path.splitext(source)[0] + ".o"

    s = step(cc, obj, "-c", IN, "-o", OUT, *flags, inputs=[source])
    if scan:
        # headers are dependency-only: they invalidate the object, never reach argv
        scan_auto_dependencies(s, relative_to_source=True)
    return s


# ---------------------------------------------------------------------
# Link / archive helpers
# ---------------------------------------------------------------------

def link_step(
    objects: Iterable[Step],
    output: PathLike,
    *,
    cc: str = "cc",
    flags: Sequence[str] = (),
    libs: Sequence[str] = (),
) -> Step:
    """Link object steps into an executable. The object steps are built first."""
    objects = list(objects)
    return step(
        cc,
        output,
        IN,
        "-o",
        OUT,
        *flags,
        *libs,
        inputs=[o.output for o in objects],
        after=objects,
    )


def archive_step(objects: Iterable[Step], output: PathLike, *, ar: str = "ar") -> Step:
    """Bundle object steps into a static library (`ar rcs lib.a objs...`)."""
    objects = list(objects)
    return step(ar, output, "rcs", OUT, IN, inputs=[o.output for o in objects], after=objects)


def program(
    sources: Iterable[PathLike],
    output: PathLike,
    *,
    cc: str = "cc",
    cflags: Sequence[str] = (),
    ldflags: Sequence[str] = (),
    build_dir: PathLike | None = None,
) -> Step:
    """compile_step for every source + link_step, objects optionally under build_dir."""
    objects: List[Step] = []
    for src in sources:
        src = os.fspath(src)
        obj = os.path.splitext(src)[0] + ".o"
        if build_dir is not None:
            obj = os.path.join(os.fspath(build_dir), os.path.basename(obj))
        objects.append(compile_step(src, obj, cc=cc, flags=cflags))
    return link_step(objects, output, cc=cc, flags=ldflags)
