"""
Application configuration and logging setup.

Settings come from environment variables (or a local .env file) through
pydantic-settings. Import `get_settings()` rather than reading os.environ.
"""

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "travel-journal"
    test_database_url: str = "mongodb://localhost:27017"
    test_database_name: str = "test-travel-journal"

    # API
    cors_origins: List[str] = ["*"]
    port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" | "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("collection", "document_id", "path", "error_code"):
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
