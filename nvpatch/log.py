from __future__ import annotations

import logging
import os
import sys
from typing import Literal, TextIO

ColorMode = Literal["auto", "always", "never"]

LOGGER_NAME = "nvpatch"

_RESET = "\033[0m"
_COLORS = {
    logging.WARNING: "\033[93m",  # bright yellow
    logging.ERROR: "\033[1;91m",  # bold bright red
    logging.CRITICAL: "\033[1;91m",
}

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ColorFormatter(logging.Formatter):
    """``level(scope): message`` lines, highlighted for warnings and errors."""

    def __init__(self, *, color: bool) -> None:
        super().__init__("%(levelname)s(%(name)s): %(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.color:
            return text
        code = _COLORS.get(record.levelno)
        if code is None:
            return text
        return f"{code}{text}{_RESET}"


def parse_level(name: str) -> int:
    try:
        return LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown log level {name!r} (expected one of: {', '.join(LEVELS)})"
        ) from None


def _use_color(mode: ColorMode, stream: TextIO) -> bool:
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def build_logger(
    level: str | int = "info",
    *,
    color: ColorMode = "auto",
    stream: TextIO | None = None,
    name: str = LOGGER_NAME,
) -> logging.Logger:
    """Create the diagnostic logger handed to every component of a run.

    Calling this again replaces the previous handler, so repeated runs in one
    process (tests, embedding) do not duplicate output.
    """
    stream = sys.stderr if stream is None else stream
    lvl = parse_level(level) if isinstance(level, str) else level

    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColorFormatter(color=_use_color(color, stream)))
    logger.addHandler(handler)
    logger.setLevel(lvl)
    logger.propagate = False
    return logger
