"""JSAPI configuration for pages embedded in the DingTalk client."""

from __future__ import annotations

import time
from typing import Any

from ..core.config import DingTalkConfig
from .models import JSApiConfig
from .signature import normalize_url, sign_jsapi

NONCE_PREFIX = "DingTalk#"


class DingTalkJSApiMixin:
    """Mixin that signs ``dd.config`` parameters for embedded pages.

    This mixin should be used with a class that has:
    - self.config: DingTalkConfig
    - self.get_jsapi_ticket(ticket_type) -> str
    """

    config: DingTalkConfig

    async def get_jsapi_ticket(self, ticket_type: str = "jsapi") -> str:
        """Get ticket. To be implemented by main class."""
        raise NotImplementedError

    async def get_jsapi_config(self, url: str, **opts: Any) -> JSApiConfig:
        """Build the signed JSAPI config for a page.

        Args:
            url: Full URL of the page calling ``dd.config``.
            **opts: Extra signing fields. ``noncestr`` and ``timestamp``
                replace the generated values.

        Returns:
            JSApiConfig; the frontend still adds ``agentId`` and ``jsApiList``.

        Example:
            ```python
            config = await client.get_jsapi_config(request.url)
            return templates.render("page.html", dd_config=config.to_dict())
            ```
        """
        ticket = await self.get_jsapi_ticket()
        now_ms = int(time.time() * 1000)
        fields: dict[str, Any] = {
            "jsapi_ticket": ticket,
            "noncestr": f"{NONCE_PREFIX}{now_ms}",
            "timestamp": now_ms,
            "url": normalize_url(url),
        }
        fields.update(opts)

        return JSApiConfig(
            corp_id=self.config.corpid,
            timestamp=fields["timestamp"],
            nonce_str=fields["noncestr"],
            signature=sign_jsapi(fields),
        )
