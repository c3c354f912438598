# config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_SCRIPT = "juche_build.py"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    script: Optional[str] = None     # None -> discover juche_build.py / *_build.py
    keep_going: bool = False
    dry_run: bool = False
    memoize: bool = True
    debug: bool = False


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read JUCHE_* environment variables."""
    env = os.environ if environ is None else environ
    return Settings(
        script=env.get("JUCHE_SCRIPT") or None,
        keep_going=_flag(env, "JUCHE_KEEP_GOING", False),
        dry_run=_flag(env, "JUCHE_DRY_RUN", False),
        memoize=_flag(env, "JUCHE_MEMOIZE", True),
        debug=_flag(env, "JUCHE_DEBUG", False),
    )
