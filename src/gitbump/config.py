# src/gitbump/config.py
# =============================================================================
# Runtime settings (environment first, CLI flags override)
# -----------------------------------------------------------------------------
#   GIT_BUMP_GIT        git executable                      (default: git)
#   GIT_BUMP_REMOTE     remote named in the push hint       (default: origin)
#   GIT_BUMP_LOG_LEVEL  DEBUG | INFO | WARNING | ERROR      (default: WARNING)
#   GIT_BUMP_LOG_FILE   optional plain-text log file
# =============================================================================

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULT_GIT = "git"
DEFAULT_REMOTE = "origin"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    git: str = DEFAULT_GIT
    remote: str = DEFAULT_REMOTE
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None
    rich: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        log_file = env.get("GIT_BUMP_LOG_FILE") or None
        return cls(
            git=env.get("GIT_BUMP_GIT") or DEFAULT_GIT,
            remote=env.get("GIT_BUMP_REMOTE") or DEFAULT_REMOTE,
            log_level=(env.get("GIT_BUMP_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            log_file=Path(log_file) if log_file else None,
        )

    def override(self, **changes: Any) -> "Settings":
        """Return a copy with every non-None value in `changes` applied."""
        kept = {k: v for k, v in changes.items() if v is not None}
        if "log_level" in kept:
            kept["log_level"] = str(kept["log_level"]).upper()
        return replace(self, **kept)
