"""DingTalk Open API client.

This module provides the main DingTalkClient class that combines
all API functionality through mixins, and the request primitive every
call goes through.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx

from ..core.config import DingTalkConfig
from ..core.logger import get_logger
from .auth import DingTalkAuthMixin
from .callback import CallbackAPI
from .jsapi import DingTalkJSApiMixin
from .login import DingTalkLoginMixin
from .message import MessageAPI
from .models import DingTalkAPIError, DingTalkValidationError
from .store import MemoryTokenStore, TicketStore, TokenStore

logger = get_logger("api.client")


class DingTalkClient(
    DingTalkAuthMixin,
    DingTalkJSApiMixin,
    DingTalkLoginMixin,
):
    """DingTalk Open API client.

    Provides access to the DingTalk server API including:
    - Access token and JSAPI ticket caching with automatic refresh
    - JSAPI config signing for embedded pages
    - Login flows and user info
    - Enterprise messages (``client.message``)
    - Event callbacks (``client.callback``)

    Every call goes through ``request()``, which attaches the access token,
    applies the proxy host and turns a non-zero ``errcode`` into
    ``DingTalkAPIError``. Nothing is retried.

    Example:
        ```python
        config = DingTalkConfig(appkey="xxx", appsecret="xxx", corpid="dingxxx")
        async with DingTalkClient(config) as client:
            await client.message.send(
                touser="manager1",
                agentid=123456,
                msgtype="text",
                text={"content": "Hello!"},
            )

            user = await client.get("user/get", {"userid": "manager1"})
            print(user["name"])
        ```
    """

    def __init__(
        self,
        config: DingTalkConfig,
        token_store: TokenStore | None = None,
        ticket_store: TicketStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize DingTalk API client.

        Args:
            config: Client configuration.
            token_store: Where the access token is loaded from and saved to.
            ticket_store: Where JSAPI tickets are loaded from and saved to.
            http_client: Pre-built httpx client; it is used as-is and never
                closed by this client.
            logger: Logger for request/response tracing.
        """
        self.config = config
        self.logger = logger if logger is not None else get_logger("api.client")

        memory_store = MemoryTokenStore(warn=config.is_production)
        self.token_store: TokenStore = token_store or memory_store
        self.ticket_store: TicketStore = ticket_store or memory_store

        self._client = http_client
        self._owns_client = http_client is None
        self._token_lock = asyncio.Lock()
        self._ticket_locks: dict[str, asyncio.Lock] = {}

        self.message = MessageAPI(self)
        self.callback = CallbackAPI(self)

    async def __aenter__(self) -> DingTalkClient:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def register_ticket_store(self, ticket_store: TicketStore | None = None) -> None:
        """Replace the store used for JSAPI tickets.

        Passing nothing switches back to a fresh in-memory store.
        """
        if ticket_store is None:
            ticket_store = MemoryTokenStore(warn=self.config.is_production)
        self.ticket_store = ticket_store
        self._ticket_locks.clear()

    def _build_client(self) -> httpx.AsyncClient:
        http = self.config.http
        limits = httpx.Limits(
            max_connections=http.max_connections,
            max_keepalive_connections=http.max_keepalive_connections if http.keep_alive else 0,
            keepalive_expiry=http.keepalive_expiry,
        )
        return httpx.AsyncClient(timeout=http.timeout, limits=limits)

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._client is None:
            self._client = self._build_client()
            self._owns_client = True
            logger.debug("DingTalkClient connected")

    async def close(self) -> None:
        """Close HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("DingTalkClient closed")

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the HTTP client, creating it on first use."""
        if self._client is None:
            self._client = self._build_client()
            self._owns_client = True
        return self._client

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        access_token: str | None = None,
        ignore_access_token: bool = False,
    ) -> Any:
        """Send an HTTP request to DingTalk.

        Args:
            url: Absolute request URL.
            method: HTTP method.
            params: Query parameters.
            json: JSON body.
            data: Form fields.
            files: Multipart files, as accepted by httpx.
            headers: Extra headers, merged over the configured defaults.
            timeout: Per-request timeout override.
            access_token: Token to send instead of the cached one.
            ignore_access_token: Send no ``access_token`` at all.

        Returns:
            Decoded JSON body, or the raw ``httpx.Response`` when the body
            is empty or not JSON.

        Raises:
            DingTalkAPIError: If the JSON body is not an object with
                ``errcode`` 0.
            httpx.HTTPError: If the request itself failed.
        """
        defaults = self.config.request_defaults
        merged_headers = {**defaults.headers, **(headers or {})}
        if timeout is None:
            timeout = defaults.timeout

        query = dict(params or {})
        if not ignore_access_token:
            query["access_token"] = access_token or await self.get_access_token()

        if self.config.proxy:
            url = url.replace(self.config.host, self.config.proxy, 1)

        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout

        client = self._ensure_client()
        try:
            response = await client.request(
                method,
                url,
                params=query or None,
                json=json,
                data=data,
                files=files,
                headers=merged_headers or None,
                **extra,
            )
        except httpx.HTTPError as exc:
            self.logger.warning(
                "[dingtalk:client:request:error] %s %s, error: %r", method, url, exc
            )
            raise

        try:
            result = response.json()
        except ValueError:
            result = None

        self.logger.debug(
            "[dingtalk:client:request:response] %s %s %s, result: %s",
            method,
            url,
            response.status_code,
            result,
        )

        if result is None:
            return response
        if not isinstance(result, dict):
            raise DingTalkAPIError(code=-1, data=result, url=url)
        if result.get("errcode") != 0:
            raise DingTalkAPIError(code=result.get("errcode", -1), data=result, url=url)
        return result

    def _api_url(self, api: str) -> str:
        if not api:
            raise DingTalkValidationError("api path required")
        return f"{self.config.host}/{api.lstrip('/')}"

    async def get(self, api: str, params: dict[str, Any] | None = None, **opts: Any) -> Any:
        """Send a GET request.

        Args:
            api: API path, e.g. ``"user/get"``.
            params: Query parameters.
            **opts: Extra ``request()`` options.
        """
        return await self.request(self._api_url(api), params=params, **opts)

    async def post(self, api: str, data: dict[str, Any] | None = None, **opts: Any) -> Any:
        """Send a POST request with a JSON body.

        Args:
            api: API path, e.g. ``"message/send"``.
            data: JSON body.
            **opts: Extra ``request()`` options.
        """
        return await self.request(self._api_url(api), method="POST", json=data, **opts)

    async def upload(
        self,
        api: str,
        file_info: dict[str, Any],
        fields: dict[str, Any] | None = None,
        **opts: Any,
    ) -> Any:
        """Upload a file as multipart form data.

        Args:
            api: API path, e.g. ``"media/upload"``.
            file_info: ``{"field": <form field name>, "path": <local file>}``.
            fields: Additional form fields.
            **opts: Extra ``request()`` options.
        """
        if not file_info.get("field"):
            raise DingTalkValidationError("file_info.field required")
        if not file_info.get("path"):
            raise DingTalkValidationError("file_info.path required")

        path = Path(file_info["path"])
        with open(path, "rb") as handle:
            return await self.request(
                self._api_url(api),
                method="POST",
                data=fields,
                files={file_info["field"]: (path.name, handle)},
                **opts,
            )


def create_client(
    appkey: str,
    appsecret: str,
    **kwargs: Any,
) -> DingTalkClient:
    """Factory function to create a DingTalk client.

    Args:
        appkey: Application key.
        appsecret: Application secret.
        **kwargs: Any other DingTalkConfig field.

    Returns:
        Configured DingTalkClient instance.
    """
    return DingTalkClient(DingTalkConfig(appkey=appkey, appsecret=appsecret, **kwargs))
