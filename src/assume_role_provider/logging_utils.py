"""Logging helpers for the assume-role credentials provider."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assume_role_provider.config import LoggingSettings

_logging_configured = False
_logging_lock = threading.Lock()

_logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _formatter() -> logging.Formatter:
    return logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)


def configure_logging(settings: "LoggingSettings") -> None:
    """Install stderr and optional file handlers at the configured level."""
    global _logging_configured

    level = getattr(logging, settings.level.upper(), logging.INFO)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_formatter())
    handlers: list[logging.Handler] = [stream_handler]

    if settings.file:
        try:
            Path(settings.file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(settings.file)
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", settings.file, exc)
        else:
            file_handler.setFormatter(_formatter())
            handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    _logging_configured = True


def ensure_logging_configured(settings: "LoggingSettings") -> bool:
    """Configure logging once per process; returns True when this call did it."""
    if _logging_configured:
        return False
    with _logging_lock:
        if _logging_configured:
            return False
        configure_logging(settings)
        return True
