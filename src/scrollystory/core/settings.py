"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod

Only the outer surfaces (CLI, API) and `TableSource.from_settings` read these
values; the ingestion and assembly functions take explicit arguments.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_WORKBOOK_PATH = "data/StoryData.xlsx"
DEFAULT_SHEETS_ENDPOINT = "https://sheets.googleapis.com/v4/spreadsheets"


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `SCROLLY_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    workbook_path : Path
        Local workbook consulted first; maps from `SCROLLY_WORKBOOK_PATH`.
    sheet_url : Optional[str]
        Spreadsheet document URL used as the fallback source. When unset the
        pipeline has no secondary location. Maps from `SCROLLY_SHEET_URL`.
    sheets_api_key : Optional[str]
        Access key appended to the batchGet request; maps from
        `SCROLLY_SHEETS_API_KEY`.
    sheets_endpoint : str
        Base of the values API; maps from `SCROLLY_SHEETS_ENDPOINT`.
    fetch_timeout : float
        Seconds the remote fetch may take; maps from `SCROLLY_FETCH_TIMEOUT`.
    """

    environment: EnvName = Field(default="dev", alias="SCROLLY_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    workbook_path: Path = Field(default=Path(DEFAULT_WORKBOOK_PATH), alias="SCROLLY_WORKBOOK_PATH")
    sheet_url: str | None = Field(default=None, alias="SCROLLY_SHEET_URL")
    sheets_api_key: str | None = Field(default=None, alias="SCROLLY_SHEETS_API_KEY")
    sheets_endpoint: str = Field(default=DEFAULT_SHEETS_ENDPOINT, alias="SCROLLY_SHEETS_ENDPOINT")
    fetch_timeout: float = Field(default=30.0, gt=0, alias="SCROLLY_FETCH_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    @property
    def has_secondary_source(self) -> bool:
        """Return True when a fallback spreadsheet URL is configured."""
        return bool(self.sheet_url)

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    We keep this behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    os.environ.setdefault("SCROLLY_ENV", "dev")
    return Settings()


# Export a ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "scrollystory") -> logging.Logger:
    """Return a process-global logger configured to the current log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
