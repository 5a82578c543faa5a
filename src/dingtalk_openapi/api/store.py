"""Persistence backends for cached access tokens and tickets.

The client never keeps credentials in a process-wide singleton. It talks to a
``TokenStore`` and a ``TicketStore`` injected at construction time; when
none are given it falls back to a per-client ``MemoryTokenStore``.

A durable store (Redis, database, shared cache) only needs the four async
methods below. ``CallbackTokenStore`` adapts plain async functions for
callers that prefer hooks over a class.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from ..core.logger import get_logger
from .models import AccessToken, TicketToken

logger = get_logger("store")


@runtime_checkable
class TokenStore(Protocol):
    """Load/save hooks for the access token."""

    async def get_token(self) -> AccessToken | None: ...

    async def save_token(self, token: AccessToken) -> None: ...


@runtime_checkable
class TicketStore(Protocol):
    """Load/save hooks for tickets, keyed by ticket type."""

    async def get_ticket(self, ticket_type: str) -> TicketToken | None: ...

    async def save_ticket(self, ticket_type: str, ticket: TicketToken) -> None: ...


class MemoryTokenStore:
    """In-memory token and ticket storage (default).

    Suitable for a single process. In production, where several workers or
    machines share one app, every save logs a warning because each process
    would fetch and hold its own credentials.
    """

    def __init__(self, warn: bool = False) -> None:
        self.warn = warn
        self._token: AccessToken | None = None
        self._tickets: dict[str, TicketToken] = {}

    async def get_token(self) -> AccessToken | None:
        return self._token

    async def save_token(self, token: AccessToken) -> None:
        self._token = token
        if self.warn:
            logger.warning("Don't save token in memory when running in a cluster or on multiple hosts!")

    async def get_ticket(self, ticket_type: str) -> TicketToken | None:
        return self._tickets.get(ticket_type)

    async def save_ticket(self, ticket_type: str, ticket: TicketToken) -> None:
        self._tickets[ticket_type] = ticket
        if self.warn:
            logger.warning("Don't save ticket in memory when running in a cluster or on multiple hosts!")

    def clear(self) -> None:
        """Drop every cached credential."""
        self._token = None
        self._tickets.clear()


class CallbackTokenStore:
    """Store built from caller-supplied async hook functions.

    Either pair of hooks may be omitted; the missing side then behaves like
    an always-empty store that discards saves, so credentials of that kind
    are fetched on every call.

    Example:
        ```python
        async def load():
            raw = await redis.get("dingtalk:token")
            return AccessToken.from_dict(json.loads(raw)) if raw else None

        async def save(token):
            await redis.set("dingtalk:token", json.dumps(token.to_dict()))

        store = CallbackTokenStore(get_token=load, save_token=save)
        client = DingTalkClient(config, token_store=store)
        ```
    """

    def __init__(
        self,
        get_token: Callable[[], Awaitable[AccessToken | None]] | None = None,
        save_token: Callable[[AccessToken], Awaitable[None]] | None = None,
        get_ticket: Callable[[str], Awaitable[TicketToken | None]] | None = None,
        save_ticket: Callable[[str, TicketToken], Awaitable[None]] | None = None,
    ) -> None:
        self._get_token = get_token
        self._save_token = save_token
        self._get_ticket = get_ticket
        self._save_ticket = save_ticket

    async def get_token(self) -> AccessToken | None:
        if self._get_token is None:
            return None
        return await self._get_token()

    async def save_token(self, token: AccessToken) -> None:
        if self._save_token is not None:
            await self._save_token(token)

    async def get_ticket(self, ticket_type: str) -> TicketToken | None:
        if self._get_ticket is None:
            return None
        return await self._get_ticket(ticket_type)

    async def save_ticket(self, ticket_type: str, ticket: TicketToken) -> None:
        if self._save_ticket is not None:
            await self._save_ticket(ticket_type, ticket)
