# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Structured logging adapter for the Google connector.

Provides a small logger abstraction with a JSON stdout backend for
services and an in-memory backend for tests.

Example:
    >>> from connector_logging import create_logger
    >>> logger = create_logger(logger_type="stdout", level="INFO", name="google_connector")
    >>> logger.info("Connector opened", domains=["example.com"])
"""

__version__ = "0.1.0"

from .factory import create_logger
from .logger import Logger
from .silent_logger import SilentLogger
from .stdout_logger import StdoutLogger

__all__ = [
    "__version__",
    "Logger",
    "SilentLogger",
    "StdoutLogger",
    "create_logger",
]
