"""Test configuration hooks."""

import pytest

from dingtalk_openapi.api import DingTalkClient, MemoryTokenStore
from dingtalk_openapi.core import DingTalkConfig

HOST = "https://oapi.dingtalk.com"


# Configure anyio to only use asyncio backend (skip trio tests)
@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to use only asyncio backend."""
    return "asyncio"


@pytest.fixture
def config():
    """Provides a basic DingTalkConfig."""
    return DingTalkConfig(appkey="key_xxx", appsecret="secret_xxx", corpid="ding_corp")


@pytest.fixture
def store():
    """Provides an empty in-memory store."""
    return MemoryTokenStore()


@pytest.fixture
async def client(config, store):
    """Provides a DingTalkClient backed by ``store``."""
    async with DingTalkClient(config, token_store=store, ticket_store=store) as api:
        yield api
