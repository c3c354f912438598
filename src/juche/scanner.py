# scanner.py
from __future__ import annotations

import os
from typing import Iterator, List, Optional

from .model import Step


class ScanError(Exception):
    """An input couldn't be read while scanning for dependencies."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot scan {path!r}: {reason}")


def iter_directives(text: str, *, marker: str = "#", directive: str = "include") -> Iterator[str]:
    """
    Yield the quoted path of every line that starts with e.g. `#include "x.h"`.

    Purely lexical: the marker has to be the first character of the line,
    followed immediately by the directive, exactly one separating character
    and a double-quoted path (no escapes). The rest of the line is ignored,
    and so is anything malformed.
    """
    prefix = marker + directive
    # "\n" only: \f, \v, \x1c-\x1e, \x85 and \u2028 do not end a line here
    for line in text.split("\n"):
        line = line.removesuffix("\r")
        path = _quoted_path(line, prefix)
        if path:
            yield path


def _quoted_path(line: str, prefix: str) -> Optional[str]:
    if not line.startswith(prefix):
        return None
    # one separating character, then the opening quote
    quote_at = len(prefix) + 1
    if len(line) <= quote_at or line[quote_at] != '"':
        return None
    end = line.find('"', quote_at + 1)
    if end == -1:
        return None
    return line[quote_at + 1:end]


def scan_auto_dependencies(
    step: Step,
    *,
    marker: str = "#",
    directive: str = "include",
    relative_to_source: bool = False,
) -> List[str]:
    """
    Register every `#include "..."` found in the step's command-line inputs
    as a dependency-only input. Returns the newly added paths, in discovery order.

    Paths are used as written (relative to the working directory) unless
    relative_to_source=True, which joins them to the including file's directory.
    """
    known = {i.path for i in step.inputs}
    added: List[str] = []

    for source in step.command_inputs:
        try:
            with open(source, encoding="utf-8", errors="replace") as f:
                text = f.read()
        except OSError as e:
            raise ScanError(source, e.strerror or str(e)) from e

        for path in iter_directives(text, marker=marker, directive=directive):
            if relative_to_source:
                path = os.path.normpath(os.path.join(os.path.dirname(source), path))
            if path in known:
                continue
            known.add(path)
            step.add_dependency(path)
            added.append(path)

    return added
