"""Core modules for the DingTalk Open API client.

This package contains:
- Configuration management
- Logging utilities
"""

from .config import (
    DEFAULT_HOST,
    DingTalkConfig,
    DingTalkSettings,
    HTTPClientConfig,
    LoggingConfig,
    RequestDefaults,
)
from .logger import get_logger, setup_logging

__all__ = [
    "DEFAULT_HOST",
    "DingTalkConfig",
    "DingTalkSettings",
    "HTTPClientConfig",
    "LoggingConfig",
    "RequestDefaults",
    "get_logger",
    "setup_logging",
]
