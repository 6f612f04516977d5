"""Logging setup for the claims web app."""

from __future__ import annotations

import logging
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_format: Optional[str] = None) -> logging.Logger:
    """Configure the root logger with a single console handler.

    Calling it again replaces the handler instead of stacking a second one,
    so the app factory can run more than once per process (tests do).
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in list(root_logger.handlers):
        if getattr(handler, "_claims_system", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(log_format or DEFAULT_FORMAT))
    handler._claims_system = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)

    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
    return root_logger
