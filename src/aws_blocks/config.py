"""Configuration management for the AWS operation blocks."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class ExecutionSettings(BaseModel):
    sdk_timeout_seconds: int = Field(default=30, ge=1, le=300)
    max_stream_bytes: int = Field(default=10 * 1024 * 1024, ge=1)


class AWSSettings(BaseModel):
    session_name_prefix: str = Field(default="flows-session", min_length=1, max_length=32)
    assume_role_duration_seconds: int | None = Field(default=None, ge=900, le=43200)

    @field_validator("session_name_prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("session_name_prefix must not be blank")
        return stripped


class CatalogSettings(BaseModel):
    path: str | None = Field(
        default=None,
        description="Alternate operations catalog; the packaged catalog is used when unset.",
    )


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)


ENV_KEYS = {
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "sdk_timeout": "SDK_TIMEOUT_SECONDS",
    "max_stream_bytes": "MAX_STREAM_BYTES",
    "session_prefix": "AWS_BLOCKS_SESSION_PREFIX",
    "assume_role_duration": "AWS_BLOCKS_ASSUME_ROLE_DURATION",
    "catalog_path": "AWS_BLOCKS_CATALOG_PATH",
}


def _resolve_path(path: str) -> str:
    """Absolute form of ``path``; relative paths are taken from the working directory."""
    return str((Path.cwd() / Path(path).expanduser()).resolve())


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_optional_int(key: str) -> int | None:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        _config_logger.warning("Invalid integer value for %s: %r, ignoring", key, value)
        return None


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=find_dotenv(usecwd=True))
    log_file_env = os.getenv(ENV_KEYS["log_file"])
    catalog_path_env = os.getenv(ENV_KEYS["catalog_path"], "").strip()

    settings_data: dict[str, object] = {
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
        "execution": {
            "sdk_timeout_seconds": _env_int(
                ENV_KEYS["sdk_timeout"],
                ExecutionSettings().sdk_timeout_seconds,
            ),
            "max_stream_bytes": _env_int(
                ENV_KEYS["max_stream_bytes"],
                ExecutionSettings().max_stream_bytes,
            ),
        },
        "aws": {
            "session_name_prefix": os.getenv(
                ENV_KEYS["session_prefix"], AWSSettings().session_name_prefix
            ),
            "assume_role_duration_seconds": _env_optional_int(
                ENV_KEYS["assume_role_duration"]
            ),
        },
        "catalog": {
            "path": catalog_path_env or None,
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
