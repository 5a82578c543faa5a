"""DingTalk Open API client.

An asyncio client for the DingTalk server API with:
- Access token and JSAPI ticket caching with pluggable persistence
- JSAPI config signing for pages embedded in the DingTalk client
- Login URL builders and SNS/user info flows
- Enterprise message and callback endpoints

Example:
    ```python
    from dingtalk_openapi import DingTalkClient, DingTalkConfig

    config = DingTalkConfig(appkey="...", appsecret="...", corpid="...")
    async with DingTalkClient(config) as client:
        token = await client.get_access_token()
        dd_config = await client.get_jsapi_config("https://example.com/page")
    ```
"""

from importlib.metadata import PackageNotFoundError, version

from .api import (
    AccessToken,
    CallbackTokenStore,
    DingTalkAPIError,
    DingTalkClient,
    DingTalkError,
    DingTalkValidationError,
    JSApiConfig,
    MemoryTokenStore,
    TicketStore,
    TicketToken,
    TokenStore,
    create_client,
    normalize_url,
    signature_hash,
    signature_hmac,
)
from .core import DingTalkConfig, DingTalkSettings, LoggingConfig, get_logger, setup_logging

__all__ = [
    "__version__",
    "DingTalkClient",
    "DingTalkConfig",
    "DingTalkSettings",
    "LoggingConfig",
    "create_client",
    "AccessToken",
    "TicketToken",
    "JSApiConfig",
    "TokenStore",
    "TicketStore",
    "MemoryTokenStore",
    "CallbackTokenStore",
    "DingTalkError",
    "DingTalkAPIError",
    "DingTalkValidationError",
    "normalize_url",
    "signature_hash",
    "signature_hmac",
    "get_logger",
    "setup_logging",
]

try:  # pragma: no cover - best-effort during development
    __version__ = version("dingtalk-openapi")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
