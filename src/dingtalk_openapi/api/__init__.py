"""DingTalk Open API module.

Components:
- client.py: DingTalkClient and the request primitive
- auth.py: Access token and ticket caching
- store.py: Credential persistence backends
- jsapi.py: JSAPI config for embedded pages
- signature.py: URL normalisation and digest helpers
- login.py: Login URLs, SNS flows and user info
- endpoints.py: Declarative endpoint wrappers
- message.py / callback.py: Business endpoints
- models.py: Data models and errors
"""

from .auth import DingTalkAuthMixin
from .callback import CallbackAPI
from .client import DingTalkClient, create_client
from .endpoints import Endpoint, EndpointGroup
from .jsapi import DingTalkJSApiMixin
from .login import DingTalkLoginMixin
from .message import MessageAPI
from .models import (
    AccessToken,
    DingTalkAPIError,
    DingTalkError,
    DingTalkValidationError,
    JSApiConfig,
    TicketToken,
)
from .signature import normalize_url, sign_jsapi, signature_hash, signature_hmac
from .store import CallbackTokenStore, MemoryTokenStore, TicketStore, TokenStore

__all__ = [
    # Main client
    "DingTalkClient",
    "create_client",
    # Models
    "AccessToken",
    "TicketToken",
    "JSApiConfig",
    "DingTalkError",
    "DingTalkAPIError",
    "DingTalkValidationError",
    # Stores
    "TokenStore",
    "TicketStore",
    "MemoryTokenStore",
    "CallbackTokenStore",
    # Signing
    "normalize_url",
    "sign_jsapi",
    "signature_hash",
    "signature_hmac",
    # Endpoint groups
    "Endpoint",
    "EndpointGroup",
    "MessageAPI",
    "CallbackAPI",
    # Mixins (for advanced usage)
    "DingTalkAuthMixin",
    "DingTalkJSApiMixin",
    "DingTalkLoginMixin",
]
