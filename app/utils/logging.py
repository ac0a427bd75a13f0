# =============================================
# File: app/utils/logging.py
# Purpose: Logging configuration (loguru file sinks)
# =============================================
from __future__ import annotations
import os

from loguru import logger

_configured = False


def configure_logging() -> None:
    """Attach rotating file sinks once per process."""
    global _configured
    if _configured:
        return
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.add(os.getenv("LOG_FILE", "logs/app.log"), rotation="10 MB", level=level)
    logger.add(os.getenv("LOG_ERROR_FILE", "logs/error.log"), rotation="10 MB", level="ERROR")
    _configured = True
