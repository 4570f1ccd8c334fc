"""Loguru sink configuration."""
from __future__ import annotations

import sys

from loguru import logger

from moneyflow.config import settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install the stderr sink once per process."""

    global _configured
    if _configured:
        return
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        format=settings.LOG_FORMAT,
        backtrace=settings.DEBUG,
        diagnose=settings.DEBUG,
    )
    _configured = True
