# -*- coding: utf-8 -*-
"""
gitbump/utils/logging.py — logging setup for the git-bump CLI.

Goals
-----
• One-liner initialization that works on a terminal and in CI:
    logger = init_logger(level="INFO", rich=True)
• Rich console handler on a TTY, plain StreamHandler (stderr) otherwise.
• Optional plain file handler (machine-parseable).
• No duplicate handlers on repeated calls.

Typical use
-----------
    from gitbump.utils.logging import init_logger, get_logger
    init_logger(level="DEBUG")
    log = get_logger("gitbump.git")
    log.debug("$ git diff HEAD")
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_NAME = "gitbump"

_LOGGER_CACHE: Dict[str, logging.Logger] = {}


def _ensure_dir(path: Union[str, Path]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def _is_tty(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def _fmt_plain() -> logging.Formatter:
    # timestamp | level | name | message
    return logging.Formatter(fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s", datefmt="%H:%M:%S")


def init_logger(
    file_path: Optional[Union[str, Path]] = None,
    *,
    level: str = "WARNING",
    rich: bool = True,
    name: str = ROOT_NAME,
) -> logging.Logger:
    """
    Initialize the package logger with:
      • Rich pretty console on stderr (if desired and a TTY) OR plain StreamHandler
      • Optional file handler with plain format
    Calling again replaces the handlers installed by the previous call.

    Args
    ----
    file_path: path to the log file (created if provided)
    level:     logging level string ("DEBUG", "INFO", ...)
    rich:      use RichHandler when stderr is a TTY
    name:      logger name
    """
    lvl = getattr(logging, level.upper(), logging.WARNING)
    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    logger.propagate = False

    for h in list(logger.handlers):
        if getattr(h, "_gitbump", False):
            logger.removeHandler(h)
            h.close()

    if rich and _is_tty(sys.stderr):
        ch: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_level=True,
            show_path=False,
            markup=False,
        )
    else:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(_fmt_plain())
    ch.setLevel(lvl)
    ch._gitbump = True  # type: ignore[attr-defined]
    logger.addHandler(ch)

    if file_path:
        _ensure_dir(file_path)
        fh = logging.FileHandler(str(file_path), mode="a", encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(_fmt_plain())
        fh._gitbump = True  # type: ignore[attr-defined]
        logger.addHandler(fh)

    _LOGGER_CACHE[name] = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger. Children of ROOT_NAME ("gitbump.git") inherit the
    handlers installed by init_logger() through normal propagation.
    """
    if name in _LOGGER_CACHE:
        return _LOGGER_CACHE[name]
    lg = logging.getLogger(name)
    _LOGGER_CACHE[name] = lg
    return lg
