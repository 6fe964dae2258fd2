"""
Database connection management for the API.

Queries live in ``autoscrape.database``; this module only hands out
short-lived connections bound to the configured database path.
"""
import logging
import sqlite3
from contextlib import contextmanager

from autoscrape.database import db_connect

from .config import config

logger = logging.getLogger(__name__)


@contextmanager
def get_db_connection():
    """Get a database connection with proper error handling."""
    conn = None
    try:
        if not config.DB_PATH:
            raise ValueError("Database path not configured")

        conn = db_connect(config.DB_PATH)
        yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn is not None:
            conn.close()
