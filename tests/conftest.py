# tests/conftest.py
"""
Shared fixtures.

FakeFS replaces the filesystem clock: a path -> timestamp table, with None
for missing paths. TouchRunner records commands and "writes" the file after
`-o`, so repeated builds see the outputs they produced.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from juche.runner import RecordingCommandRunner
from juche.ui.console import Console


class FakeFS:
    def __init__(self, **stamps: int):
        self.stamps: Dict[str, int] = {}
        self.clock = 0
        for path, ts in stamps.items():
            self.set(path, ts)

    def set(self, path: str, ts: int) -> None:
        self.stamps[path] = ts
        self.clock = max(self.clock, ts)

    def touch(self, path: str) -> None:
        self.clock += 1
        self.stamps[path] = self.clock

    def mtime(self, path: str) -> Optional[int]:
        return self.stamps.get(path)


class TouchRunner(RecordingCommandRunner):
    def __init__(self, fs: FakeFS, exit_codes: Optional[Dict[str, int]] = None):
        super().__init__(exit_codes)
        self.fs = fs

    def run(self, argv: Sequence[str]) -> int:
        code = super().run(argv)
        if code == 0 and "-o" in argv:
            self.fs.touch(argv[list(argv).index("-o") + 1])
        return code

    @property
    def outputs(self) -> List[str]:
        return [c[c.index("-o") + 1] for c in self.commands if "-o" in c]


@pytest.fixture
def fs() -> FakeFS:
    return FakeFS()


@pytest.fixture
def runner(fs) -> TouchRunner:
    return TouchRunner(fs)


@pytest.fixture
def console() -> Console:
    return Console(quiet=True)
