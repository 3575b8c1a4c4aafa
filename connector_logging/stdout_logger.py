# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Stdout logger implementation with structured JSON output."""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from .logger import Logger

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class StdoutLogger(Logger):
    """Logger that writes one JSON object per line to stdout.

    Records are also forwarded to the stdlib logger of the same name so
    that handlers and pytest's caplog see them.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize stdout logger.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR)
            name: Optional logger name for identification

        Raises:
            ValueError: If the level is not recognized
        """
        self.level = level.upper()
        self.name = name or "google_connector"

        if self.level not in LEVELS:
            raise ValueError(f"Invalid log level: {level}. Must be one of {list(LEVELS.keys())}")

        self._stdlib_logger = logging.getLogger(self.name)
        # Filtering happens in _log using self.level
        self._stdlib_logger.setLevel(logging.NOTSET)

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", False)
        if LEVELS[level] < LEVELS[self.level]:
            return

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "logger": self.name,
            "message": message,
        }
        if kwargs:
            log_entry["extra"] = kwargs
        if exc_info:
            log_entry["exception"] = traceback.format_exc().rstrip()

        try:
            print(json.dumps(log_entry, default=str), file=sys.stdout, flush=True)
        except (TypeError, ValueError) as e:
            print(f"{level}: {message} (JSON serialization failed: {e})", file=sys.stderr, flush=True)

        extra = {"extra": kwargs} if kwargs else None
        self._stdlib_logger.log(LEVELS[level], message, exc_info=exc_info, extra=extra)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self._log("ERROR", message, **kwargs)
