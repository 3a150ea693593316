"""Logging configuration for the OMERO web client."""

from __future__ import annotations

import logging
from pathlib import Path

try:
    import colorlog
    _COLORLOG_AVAILABLE = True
except ImportError:
    _COLORLOG_AVAILABLE = False

log = logging.getLogger("omero-web-client")

_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s"


def _setup_logging(debug: bool = False, log_file: Path | None = None) -> None:
    """
    Attach console (and optionally file) handlers to the package logger.

    urllib3's connection chatter is only shown in debug mode.  The
    keep-alive thread is named ``omero-keep-alive`` so its records are
    easy to pick out.
    """
    level = logging.DEBUG if debug else logging.INFO
    log.setLevel(level)
    log.handlers.clear()
    logging.getLogger("urllib3").setLevel(logging.DEBUG if debug else logging.WARNING)

    if _COLORLOG_AVAILABLE:
        handler = colorlog.StreamHandler()
        handler.setFormatter(colorlog.ColoredFormatter(
            "%(log_color)s" + _FORMAT.replace("%(message)s", "%(reset)s%(message)s"),
            datefmt="%H:%M:%S",
            log_colors={
                "DEBUG":    "cyan",
                "INFO":     "green",
                "WARNING":  "yellow",
                "ERROR":    "red",
                "CRITICAL": "bold_red",
            },
        ))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    log.addHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        log.addHandler(file_handler)
