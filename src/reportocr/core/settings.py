"""Centralized application configuration using Pydantic Settings (v2).

`load_settings()` builds and caches one `Settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod

AWS region and credentials are passed through to boto3 untouched; the batch
and rate-limit knobs are consumed by the pipelines.
"""

from __future__ import annotations

import hashlib
import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `REPORTOCR_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    aws_region : str
        Region of the Textract endpoint; maps from `AWS_REGION`.
    aws_access_key_id, aws_secret_access_key, aws_session_token : str | None
        Optional explicit credentials. When the key id or secret is missing the
        default boto3 credential chain is used instead.
    max_batch_size : int
        Upper bound on documents per batch call.
    document_requests_per_minute : int
        Per-caller admissions allowed inside one rolling minute.
    ocr_timeout_seconds : float
        Bound on a single OCR call (connect, read and overall wait).
    batch_concurrency : int
        Worker threads used to dispatch documents of one batch.
    """

    environment: EnvName = Field(default="dev", alias="REPORTOCR_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    aws_access_key_id: str | None = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str | None = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    aws_session_token: str | None = Field(default=None, alias="AWS_SESSION_TOKEN")

    max_batch_size: int = Field(default=10, gt=0, alias="TEXTRACT_MAX_BATCH_SIZE")
    document_requests_per_minute: int = Field(
        default=10, gt=0, alias="TEXTRACT_DOCUMENT_REQUESTS_PER_MINUTE"
    )
    ocr_timeout_seconds: float = Field(default=30.0, gt=0, alias="TEXTRACT_TIMEOUT_SECONDS")
    batch_concurrency: int = Field(default=4, gt=0, alias="TEXTRACT_BATCH_CONCURRENCY")

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
    def has_explicit_credentials(self) -> bool:
        """Return True when both the access key id and secret are configured."""
        return bool(self.aws_access_key_id and self.aws_secret_access_key)

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    We keep this behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    os.environ.setdefault("REPORTOCR_ENV", "dev")
    return Settings()


def get_logger(name: str = "reportocr") -> logging.Logger:
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


def hash_identifier(identifier: str) -> str:
    """Return the SHA-256 hex digest of `identifier` for log-safe output."""
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()
