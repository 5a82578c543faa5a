"""Configuration management for the DingTalk Open API client.

This module provides configuration models and loading functionality using Pydantic
for validation and type safety.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HOST = "https://oapi.dingtalk.com"

_DOTENV_LOADED = False


def _load_env_once() -> None:
    """Load environment variables from a .env file exactly once."""

    global _DOTENV_LOADED
    if not _DOTENV_LOADED:
        load_dotenv()
        _DOTENV_LOADED = True


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in configuration data."""

    if isinstance(data, str):
        return os.path.expandvars(data)
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


class HTTPClientConfig(BaseModel):
    """Connection pool settings for the default httpx client."""

    keep_alive: bool = Field(default=True, description="Reuse connections between requests")
    timeout: float = Field(default=30.0, ge=0.0, description="Default HTTP timeout in seconds")
    max_connections: int | None = Field(
        default=None,
        ge=1,
        description="Maximum concurrent connections (None for unlimited)",
    )
    max_keepalive_connections: int = Field(
        default=256, ge=0, description="Maximum idle connections kept in the pool"
    )
    keepalive_expiry: float = Field(
        default=30.0, ge=0.0, description="Seconds an idle connection is kept open"
    )


class RequestDefaults(BaseModel):
    """Defaults merged into every outbound request."""

    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra HTTP headers sent with requests"
    )
    timeout: float | None = Field(
        default=None, ge=0.0, description="Override the client timeout for each request"
    )


class DingTalkConfig(BaseModel):
    """Configuration for a DingTalk Open API client."""

    appkey: str = Field(..., description="Application key (corpid when sso is enabled)")
    appsecret: str = Field(..., description="Application secret")
    host: str = Field(default=DEFAULT_HOST, description="DingTalk API host")
    proxy: str | None = Field(
        default=None, description="Host that replaces `host` in outbound request URLs"
    )
    corpid: str | None = Field(default=None, description="Corp ID returned in JSAPI config")
    sso: bool = Field(default=False, description="Obtain tokens from the SSO endpoint")
    redirect_uri: str | None = Field(
        default=None, description="Default redirect URI for login URLs"
    )
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )
    request_defaults: RequestDefaults = Field(
        default_factory=RequestDefaults, description="Defaults for every request"
    )
    http: HTTPClientConfig = Field(
        default_factory=HTTPClientConfig, description="HTTP connection pool settings"
    )

    @field_validator("appkey", "appsecret")
    @classmethod
    def validate_credentials(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("appkey and appsecret cannot be empty")
        return value.strip()

    @field_validator("host", "proxy")
    @classmethod
    def validate_host(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip().rstrip("/")
        if not value.startswith("http"):
            raise ValueError("Host must start with http:// or https://")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    log_file: str | None = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Max log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of backup files")

    @field_validator("level")
    @classmethod
    def normalise_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {level}")
        return level


class DingTalkSettings(BaseSettings):
    """Top-level settings loaded from YAML files and ``DINGTALK_`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DINGTALK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    client: DingTalkConfig
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> DingTalkSettings:
        """Load settings from a YAML file."""

        _load_env_once()
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, encoding="utf-8") as handle:
            try:
                config_data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in config file: {exc}") from exc

        if not config_data:
            config_data = {}

        config_data = _expand_env_vars(config_data)
        return cls(**config_data)

    @classmethod
    def from_env(cls) -> DingTalkSettings:
        """Load settings purely from the environment (and ``.env``)."""

        _load_env_once()
        return cls()
