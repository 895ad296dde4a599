"""Logging configuration for the API process."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .config import get_settings

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep our own records and quiet everything else:
    - taskapi.* passes through at the handler level
    - uvicorn access/error logs only from WARNING
    - any other third-party logger only from WARNING
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "taskapi" or record.name.startswith("taskapi."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(*, level: str | int | None = None, log_file: str | Path | None = None) -> None:
    """
    Configure the root logger with a console handler and, when a path is
    configured, a file handler that receives everything at DEBUG.

    Safe to call more than once; previous handlers are replaced.
    """
    settings = get_settings()
    console_level = level if level is not None else settings.log_level
    if isinstance(console_level, str):
        console_level = logging.getLevelName(console_level.upper())
        if not isinstance(console_level, int):
            console_level = logging.INFO
    target = log_file if log_file is not None else settings.log_file

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    if target:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
