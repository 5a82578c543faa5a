"""Access token and ticket management for the DingTalk API.

This module handles:
- Access token caching and refresh (app or SSO credentials)
- JSAPI ticket caching and refresh, keyed by ticket type
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from ..core.config import DingTalkConfig
from ..core.logger import get_logger
from .models import AccessToken, TicketToken, compute_expire_time
from .store import TicketStore, TokenStore

logger = get_logger("api.auth")

DEFAULT_TICKET_TYPE = "jsapi"


def _now() -> float:
    return time.time()


class DingTalkAuthMixin:
    """Mixin providing credential caching for the DingTalk API.

    This mixin should be used with a class that has:
    - self.config: DingTalkConfig
    - self.token_store: TokenStore
    - self.ticket_store: TicketStore
    - self._token_lock: asyncio.Lock
    - self._ticket_locks: dict[str, asyncio.Lock]
    - self.get(api, params, **opts) -> dict
    """

    # API endpoints
    TOKEN_URL = "gettoken"
    SSO_TOKEN_URL = "sso/gettoken"
    JSAPI_TICKET_URL = "get_jsapi_ticket"

    # These will be set by the main class
    config: DingTalkConfig
    token_store: TokenStore
    ticket_store: TicketStore
    _token_lock: asyncio.Lock
    _ticket_locks: dict[str, asyncio.Lock]

    async def get(self, api: str, params: dict[str, Any] | None = None, **opts: Any) -> Any:
        """Send a GET request. To be implemented by main class."""
        raise NotImplementedError

    async def get_access_token(self) -> str:
        """Get an access token, fetching a new one when the cached one expired.

        Returns:
            Valid access token.

        Raises:
            DingTalkAPIError: If the token request fails.
        """
        token = await self.token_store.get_token()
        if token and token.is_valid(_now()):
            return token.access_token

        async with self._token_lock:
            # Another caller may have refreshed while we waited
            token = await self.token_store.get_token()
            if token and token.is_valid(_now()):
                return token.access_token

            if self.config.sso:
                url = self.SSO_TOKEN_URL
                params = {"corpid": self.config.appkey, "corpsecret": self.config.appsecret}
            else:
                url = self.TOKEN_URL
                params = {"appkey": self.config.appkey, "appsecret": self.config.appsecret}

            logger.debug("Requesting new access_token from %s", url)
            data = await self.get(url, params, ignore_access_token=True)

            expires_in = data["expires_in"]
            token = AccessToken(
                access_token=data["access_token"],
                expire_time=compute_expire_time(expires_in, _now()),
            )
            await self.token_store.save_token(token)

            logger.info("Obtained access_token (expires in %d seconds)", expires_in)
            return token.access_token

    async def get_jsapi_ticket(self, ticket_type: str = DEFAULT_TICKET_TYPE) -> str:
        """Get a ticket of the given type, fetching a new one when needed.

        Args:
            ticket_type: Ticket type, ``"jsapi"`` by default.

        Returns:
            Valid ticket.

        Raises:
            DingTalkAPIError: If the ticket request fails.
        """
        ticket_type = ticket_type or DEFAULT_TICKET_TYPE

        ticket = await self.ticket_store.get_ticket(ticket_type)
        if ticket and ticket.is_valid(_now()):
            return ticket.ticket

        lock = self._ticket_locks.setdefault(ticket_type, asyncio.Lock())
        async with lock:
            ticket = await self.ticket_store.get_ticket(ticket_type)
            if ticket and ticket.is_valid(_now()):
                return ticket.ticket

            logger.debug("Requesting new %s ticket", ticket_type)
            data = await self.get(self.JSAPI_TICKET_URL, {"type": ticket_type})

            expires_in = data["expires_in"]
            ticket = TicketToken(
                ticket=data["ticket"],
                expire_time=compute_expire_time(expires_in, _now()),
            )
            await self.ticket_store.save_ticket(ticket_type, ticket)

            logger.info("Obtained %s ticket (expires in %d seconds)", ticket_type, expires_in)
            return ticket.ticket
