# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Silent logger implementation for testing."""

from typing import Any

from .logger import Logger


class SilentLogger(Logger):
    """Logger that stores log messages in memory without output.

    Note: SilentLogger does not filter logs by level - all logs are captured for testing.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        self.level = level.upper()
        self.name = name or "google_connector"
        self.logs: list[dict[str, Any]] = []

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", False)
        log_entry: dict[str, Any] = {
            "level": level,
            "message": message,
        }
        if kwargs:
            log_entry["extra"] = kwargs
        if exc_info:
            log_entry["exc_info"] = True

        self.logs.append(log_entry)

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

    def clear_logs(self) -> None:
        """Clear all stored log messages."""
        self.logs.clear()

    def get_logs(self, level: str | None = None) -> list[dict[str, Any]]:
        """Get stored log messages, optionally filtered by level.

        Args:
            level: Optional log level to filter by (DEBUG, INFO, WARNING, ERROR)

        Returns:
            List of log entries
        """
        if level is None:
            return self.logs
        return [log for log in self.logs if log["level"] == level]

    def has_log(self, message: str, level: str | None = None) -> bool:
        """Check if a log message containing ``message`` was recorded."""
        logs_to_search = self.get_logs(level) if level else self.logs
        return any(message in log["message"] for log in logs_to_search)
