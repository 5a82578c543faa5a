"""Data models for the DingTalk Open API.

This module contains the credential records cached by the client, the JSAPI
config handed to embedded pages, and the exception hierarchy.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from typing import Any

# Seconds subtracted from the server-declared lifetime when a credential is saved
EXPIRY_MARGIN_SECONDS = 10


def compute_expire_time(expires_in: float, now: float | None = None) -> float:
    """Return the Unix timestamp a freshly issued credential should expire at."""
    if now is None:
        now = time.time()
    return now + (expires_in - EXPIRY_MARGIN_SECONDS)


@dataclass
class AccessToken:
    """Access token with expiration tracking.

    Attributes:
        access_token: The access token string.
        expire_time: Unix timestamp after which the token is no longer used.
    """

    access_token: str
    expire_time: float

    def is_valid(self, now: float | None = None) -> bool:
        """Check whether the token can still be used."""
        if now is None:
            now = time.time()
        return bool(self.access_token) and now < self.expire_time

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessToken:
        return cls(access_token=data["access_token"], expire_time=float(data["expire_time"]))


@dataclass
class TicketToken:
    """JSAPI ticket with expiration tracking.

    Attributes:
        ticket: The ticket string.
        expire_time: Unix timestamp after which the ticket is no longer used.
    """

    ticket: str
    expire_time: float

    def is_valid(self, now: float | None = None) -> bool:
        """Check whether the ticket can still be used."""
        if now is None:
            now = time.time()
        return bool(self.ticket) and now < self.expire_time

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TicketToken:
        return cls(ticket=data["ticket"], expire_time=float(data["expire_time"]))


@dataclass
class JSApiConfig:
    """Signed configuration for ``dd.config`` in an embedded page.

    The frontend still needs to add ``agentId`` and ``jsApiList`` itself.
    """

    corp_id: str | None
    timestamp: int | str
    nonce_str: str
    signature: str

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping expected by the DingTalk JSAPI."""
        return {
            "corpId": self.corp_id,
            "timeStamp": self.timestamp,
            "nonceStr": self.nonce_str,
            "signature": self.signature,
        }


class DingTalkError(Exception):
    """Base exception for the DingTalk client."""


class DingTalkValidationError(DingTalkError, ValueError):
    """Raised when a required argument is missing, before any request is sent."""


class DingTalkAPIError(DingTalkError):
    """Exception for DingTalk API errors.

    Attributes:
        code: DingTalk ``errcode``.
        msg: DingTalk ``errmsg``.
        data: Full decoded response body.
        url: Request URL that produced the error.
    """

    def __init__(self, code: int, data: Any, url: str = ""):
        self.code = code
        self.msg = str(data.get("errmsg", "")) if isinstance(data, dict) else ""
        self.data = data
        self.url = url
        body = json.dumps(data, ensure_ascii=False)
        super().__init__(f"{url} got error: {body}" if url else f"DingTalk API error: {body}")
