"""
API configuration and settings management.
"""
import os
import sqlite3

from autoscrape.database import db_connect, db_init


class Config:
    """Application configuration."""

    # Database
    DB_PATH: str = os.getenv("AUTOSCRAPE_DB", "./data/db/autoscrape.db")

    # API settings
    API_TITLE: str = "AutoScrape API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "REST API for extracted vehicle listings and Marketplace descriptions"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Pagination defaults
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    DEFAULT_ACTIVITY_LIMIT: int = 10
    MAX_ACTIVITY_LIMIT: int = 200

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("API_LOG_FILE", "api.log")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup and make sure the schema exists."""
        if not cls.DB_PATH:
            raise ValueError("Database path not configured")
        os.makedirs(os.path.dirname(cls.DB_PATH) or ".", exist_ok=True)
        conn: sqlite3.Connection = db_connect(cls.DB_PATH)
        try:
            db_init(conn)
        finally:
            conn.close()


# Global config instance
config = Config()
