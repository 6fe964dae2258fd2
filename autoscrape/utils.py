"""
Utility functions for logging, timestamps and text cleanup.
"""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional


def init_logger(
    name: str = "autoscrape",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "autoscrape.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def clean_text(s: Optional[str]) -> str:
    """Collapse whitespace runs and trim."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()
