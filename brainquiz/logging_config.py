"""Logging setup for scripts and entry points."""

from __future__ import annotations

import logging
import os
from logging import Logger
from typing import Optional


def configure_logging(level: Optional[str] = None) -> Logger:
    """Configure root logging once and return the package logger.

    ``level`` falls back to the ``LOG_LEVEL`` environment variable, then INFO.
    """
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("brainquiz")
