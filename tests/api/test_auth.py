"""Tests for access token and ticket caching."""

from __future__ import annotations

import asyncio
import re

import pytest
from pytest_httpx import HTTPXMock

from dingtalk_openapi.api import auth as auth_module
from dingtalk_openapi.api import DingTalkClient
from dingtalk_openapi.api.models import AccessToken, DingTalkAPIError, TicketToken
from dingtalk_openapi.api.store import CallbackTokenStore, MemoryTokenStore
from dingtalk_openapi.core import DingTalkConfig

TOKEN_URL = re.compile(r"https://oapi\.dingtalk\.com/gettoken\?.*")
SSO_TOKEN_URL = re.compile(r"https://oapi\.dingtalk\.com/sso/gettoken\?.*")
TICKET_URL = re.compile(r"https://oapi\.dingtalk\.com/get_jsapi_ticket\?.*")


@pytest.fixture
def frozen_now(monkeypatch):
    """Freeze the clock used for expiry bookkeeping."""
    monkeypatch.setattr(auth_module, "_now", lambda: 1_000_000.0)
    return 1_000_000.0


class TestGetAccessToken:
    """Tests for get_access_token."""

    @pytest.mark.anyio
    async def test_valid_token_returned_without_request(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock
    ) -> None:
        await store.save_token(AccessToken(access_token="cached", expire_time=2e12))

        assert await client.get_access_token() == "cached"
        assert httpx_mock.get_requests() == []

    @pytest.mark.anyio
    async def test_fetch_when_absent(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock, frozen_now
    ) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL,
            json={"errcode": 0, "errmsg": "ok", "access_token": "fresh", "expires_in": 7200},
        )

        assert await client.get_access_token() == "fresh"

        requests = httpx_mock.get_requests()
        assert len(requests) == 1
        assert requests[0].url.params["appkey"] == "key_xxx"
        assert requests[0].url.params["appsecret"] == "secret_xxx"
        assert "access_token" not in requests[0].url.params

        saved = await store.get_token()
        assert saved == AccessToken(access_token="fresh", expire_time=frozen_now + 7200 - 10)

    @pytest.mark.anyio
    async def test_fetch_when_expired(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock, frozen_now
    ) -> None:
        await store.save_token(AccessToken(access_token="stale", expire_time=frozen_now - 1))
        httpx_mock.add_response(
            url=TOKEN_URL,
            json={"errcode": 0, "access_token": "fresh", "expires_in": 7200},
        )

        assert await client.get_access_token() == "fresh"
        assert len(httpx_mock.get_requests()) == 1
        assert (await store.get_token()).expire_time == frozen_now + 7190

    @pytest.mark.anyio
    async def test_second_call_uses_cache(
        self, client: DingTalkClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL,
            json={"errcode": 0, "access_token": "fresh", "expires_in": 7200},
        )

        assert await client.get_access_token() == "fresh"
        assert await client.get_access_token() == "fresh"
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.anyio
    async def test_concurrent_callers_share_one_fetch(
        self, client: DingTalkClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL,
            json={"errcode": 0, "access_token": "fresh", "expires_in": 7200},
        )

        tokens = await asyncio.gather(*(client.get_access_token() for _ in range(5)))

        assert tokens == ["fresh"] * 5
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.anyio
    async def test_sso_endpoint(self, httpx_mock: HTTPXMock) -> None:
        config = DingTalkConfig(appkey="corp_xxx", appsecret="sso_secret", sso=True)
        httpx_mock.add_response(
            url=SSO_TOKEN_URL,
            json={"errcode": 0, "access_token": "sso_token", "expires_in": 7200},
        )

        async with DingTalkClient(config) as client:
            assert await client.get_access_token() == "sso_token"

        request = httpx_mock.get_requests()[0]
        assert request.url.params["corpid"] == "corp_xxx"
        assert request.url.params["corpsecret"] == "sso_secret"

    @pytest.mark.anyio
    async def test_error_propagates_without_retry(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock
    ) -> None:
        body = {"errcode": 40089, "errmsg": "invalid appkey or appsecret"}
        httpx_mock.add_response(url=TOKEN_URL, json=body)

        with pytest.raises(DingTalkAPIError) as exc_info:
            await client.get_access_token()

        assert exc_info.value.code == 40089
        assert exc_info.value.data == body
        assert len(httpx_mock.get_requests()) == 1
        assert await store.get_token() is None

    @pytest.mark.anyio
    async def test_uses_custom_store(self, config: DingTalkConfig, httpx_mock: HTTPXMock) -> None:
        saved: list[AccessToken] = []

        async def load() -> AccessToken | None:
            return saved[-1] if saved else None

        async def save(token: AccessToken) -> None:
            saved.append(token)

        httpx_mock.add_response(
            url=TOKEN_URL,
            json={"errcode": 0, "access_token": "fresh", "expires_in": 7200},
        )

        store = CallbackTokenStore(get_token=load, save_token=save)
        async with DingTalkClient(config, token_store=store) as client:
            assert await client.get_access_token() == "fresh"
            assert await client.get_access_token() == "fresh"

        assert [token.access_token for token in saved] == ["fresh"]


class TestGetJsapiTicket:
    """Tests for get_jsapi_ticket."""

    @pytest.mark.anyio
    async def test_valid_ticket_returned_without_request(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock
    ) -> None:
        await store.save_ticket("jsapi", TicketToken(ticket="cached", expire_time=2e12))

        assert await client.get_jsapi_ticket() == "cached"
        assert httpx_mock.get_requests() == []

    @pytest.mark.anyio
    async def test_fetch_ticket_with_access_token(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock, frozen_now
    ) -> None:
        await store.save_token(AccessToken(access_token="tok", expire_time=2e12))
        httpx_mock.add_response(
            url=TICKET_URL,
            json={"errcode": 0, "ticket": "tkt", "expires_in": 7200},
        )

        assert await client.get_jsapi_ticket() == "tkt"

        request = httpx_mock.get_requests()[0]
        assert request.url.params["type"] == "jsapi"
        assert request.url.params["access_token"] == "tok"
        assert await store.get_ticket("jsapi") == TicketToken(
            ticket="tkt", expire_time=frozen_now + 7190
        )

    @pytest.mark.anyio
    async def test_ticket_types_cached_separately(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock
    ) -> None:
        await store.save_token(AccessToken(access_token="tok", expire_time=2e12))
        await store.save_ticket("jsapi", TicketToken(ticket="jsapi_tkt", expire_time=2e12))
        httpx_mock.add_response(
            url=TICKET_URL,
            json={"errcode": 0, "ticket": "other_tkt", "expires_in": 7200},
        )

        assert await client.get_jsapi_ticket("other") == "other_tkt"
        assert await client.get_jsapi_ticket("jsapi") == "jsapi_tkt"
        assert httpx_mock.get_requests()[0].url.params["type"] == "other"

    @pytest.mark.anyio
    async def test_register_ticket_store(
        self, client: DingTalkClient, httpx_mock: HTTPXMock
    ) -> None:
        other_store = MemoryTokenStore()
        await other_store.save_ticket("jsapi", TicketToken(ticket="elsewhere", expire_time=2e12))

        client.register_ticket_store(other_store)

        assert await client.get_jsapi_ticket() == "elsewhere"
        assert httpx_mock.get_requests() == []

    @pytest.mark.anyio
    async def test_register_without_store_resets_to_memory(
        self, client: DingTalkClient, store: MemoryTokenStore, httpx_mock: HTTPXMock
    ) -> None:
        await store.save_token(AccessToken(access_token="tok", expire_time=2e12))
        await store.save_ticket("jsapi", TicketToken(ticket="old", expire_time=2e12))
        httpx_mock.add_response(
            url=TICKET_URL, json={"errcode": 0, "ticket": "fresh_tkt", "expires_in": 7200}
        )

        client.register_ticket_store()

        assert isinstance(client.ticket_store, MemoryTokenStore)
        assert client.ticket_store is not store
        assert await client.get_jsapi_ticket() == "fresh_tkt"
        assert await store.get_ticket("jsapi") == TicketToken(ticket="old", expire_time=2e12)
