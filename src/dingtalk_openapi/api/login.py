"""Login and user info operations for DingTalk.

This module provides:
- Login URL builders (QR connect, iframe QR, in-app auth, web login)
- SNS code exchange (persistent code, SNS token, SNS user info)
- User info lookups by user id, SSO code or signed temporary auth code
"""

from __future__ import annotations

import time
from typing import Any
from urllib.parse import urlencode

from ..core.config import DingTalkConfig
from ..core.logger import get_logger
from .models import DingTalkValidationError
from .signature import signature_hmac

logger = get_logger("api.login")


class DingTalkLoginMixin:
    """Mixin providing login flows for the DingTalk API.

    This mixin should be used with a class that has:
    - self.config: DingTalkConfig
    - self.get(api, params, **opts) -> dict
    - self.post(api, data, **opts) -> dict
    """

    # API endpoints
    QRCONNECT_URL = "connect/qrconnect"
    SNS_AUTHORIZE_URL = "connect/oauth2/sns_authorize"

    config: DingTalkConfig

    async def get(self, api: str, params: dict[str, Any] | None = None, **opts: Any) -> Any:
        """Send a GET request. To be implemented by main class."""
        raise NotImplementedError

    async def post(self, api: str, data: dict[str, Any] | None = None, **opts: Any) -> Any:
        """Send a POST request. To be implemented by main class."""
        raise NotImplementedError

    def _login_url(self, path: str, scope: str, query: dict[str, Any] | None) -> str:
        params: dict[str, Any] = {
            "response_type": "code",
            "scope": scope,
            "state": "STATE",
            "appid": self.config.appkey,
            "redirect_uri": self.config.redirect_uri,
        }
        if query:
            params.update(query)
        params = {key: value for key, value in params.items() if value is not None}
        return f"{self.config.host}/{path}?{urlencode(params)}"

    def get_qrconnect_url(self, query: dict[str, Any] | None = None) -> str:
        """Get the hosted QR-code login page URL.

        Args:
            query: Overrides for ``appid``, ``redirect_uri``, ``state``, ...
                ``redirect_uri`` must match the one configured for the app.

        Returns:
            Login URL to redirect the user to.
        """
        return self._login_url(self.QRCONNECT_URL, "snsapi_login", query)

    def get_iframe_qr_goto_url(self, query: dict[str, Any] | None = None) -> str:
        """Get the ``goto`` URL for a QR code embedded in an iframe."""
        return self._login_url(self.SNS_AUTHORIZE_URL, "snsapi_login", query)

    def get_web_auth_url(self, query: dict[str, Any] | None = None) -> str:
        """Get the authorisation URL for H5 apps opened inside the DingTalk client."""
        return self._login_url(self.SNS_AUTHORIZE_URL, "snsapi_auth", query)

    def get_web_login_url(self, query: dict[str, Any] | None = None) -> str:
        """Get the account login URL for web apps opened in a browser."""
        return self._login_url(self.SNS_AUTHORIZE_URL, "snsapi_login", query)

    def get_sns_authorize_url(self, query: dict[str, Any]) -> str:
        """Get the final redirect URL once the iframe QR login succeeded.

        Args:
            query: Must contain the one-time ``loginTmpCode``.

        Raises:
            DingTalkValidationError: If ``loginTmpCode`` is missing.
        """
        if not query or not query.get("loginTmpCode"):
            raise DingTalkValidationError("loginTmpCode required")
        return self._login_url(self.SNS_AUTHORIZE_URL, "snsapi_login", query)

    # The access tokens below must come from the login app (appid), not the corp app.

    async def get_persistent_code(self, access_token: str, tmp_auth_code: str) -> dict[str, Any]:
        """Exchange a temporary auth code for ``openid`` and ``persistent_code``."""
        return await self.post(
            "sns/get_persistent_code",
            {"tmp_auth_code": tmp_auth_code},
            access_token=access_token,
        )

    async def get_sns_token(
        self, access_token: str, openid: str, persistent_code: str
    ) -> dict[str, Any]:
        """Get an SNS token for a user."""
        return await self.post(
            "sns/get_sns_token",
            {"openid": openid, "persistent_code": persistent_code},
            access_token=access_token,
        )

    async def get_sns_user_info(self, access_token: str, sns_token: str) -> dict[str, Any]:
        """Get the profile of the user behind an SNS token."""
        return await self.get(
            "sns/getuserinfo", {"sns_token": sns_token}, access_token=access_token
        )

    async def get_user_info(self, access_token: str, userid: str) -> dict[str, Any]:
        """Get user details by user id."""
        return await self.get("user/get", {"userid": userid}, access_token=access_token)

    async def get_sso_user_info(self, access_token: str, code: str) -> dict[str, Any]:
        """Get the admin identity behind an SSO code."""
        return await self.get("sso/getuserinfo", {"code": code}, access_token=access_token)

    async def get_user_info_by_code(self, tmp_auth_code: str) -> dict[str, Any]:
        """Get user info from a temporary auth code using a signed request.

        The request carries no access token; it is authenticated by an
        HMAC-SHA256 (base64) signature of the millisecond timestamp keyed by
        the app secret.
        """
        if not tmp_auth_code:
            raise DingTalkValidationError("tmp_auth_code required")

        timestamp = str(int(time.time() * 1000))
        params = {
            "accessKey": self.config.appkey,
            "timestamp": timestamp,
            "signature": signature_hmac(timestamp, self.config.appsecret, "sha256", "base64"),
        }
        logger.debug("Requesting user info by code")
        return await self.post(
            "sns/getuserinfo_bycode",
            {"tmp_auth_code": tmp_auth_code},
            params=params,
            ignore_access_token=True,
        )
