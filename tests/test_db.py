import asyncio

import pytest

from contact_api import db
from contact_api.db import (
    ConnectionCache,
    DatabaseUnavailableError,
    STATUS_CONNECTED,
    STATUS_DISCONNECTED,
    STATUS_PING_FAILED,
    database_name_from_uri,
)

from .conftest import make_settings


class FakeAdmin:
    def __init__(self, client):
        self.client = client

    async def command(self, name, **kwargs):
        await asyncio.sleep(self.client.delay)
        if self.client.fail_ping:
            raise ConnectionError("server selection timeout")
        return {"ok": 1.0}


class FakeClient:
    def __init__(self, uri, fail_ping=False, delay=0.0, **options):
        self.uri = uri
        self.options = options
        self.fail_ping = fail_ping
        self.delay = delay
        self.admin = FakeAdmin(self)
        self.closed = False

    def get_database(self, name):
        return {"name": name}

    def close(self):
        self.closed = True


class FakeClientFactory:
    def __init__(self, fail_ping=False, delay=0.0):
        self.fail_ping = fail_ping
        self.delay = delay
        self.clients = []

    def __call__(self, uri, **options):
        client = FakeClient(uri, fail_ping=self.fail_ping, delay=self.delay, **options)
        self.clients.append(client)
        return client


@pytest.fixture(autouse=True)
def skip_model_registration(monkeypatch):
    async def fake_init_beanie(**kwargs):
        return None

    monkeypatch.setattr(db, "init_beanie", fake_init_beanie)


async def test_concurrent_first_calls_share_one_connection():
    factory = FakeClientFactory(delay=0.01)
    cache = ConnectionCache(make_settings(), client_factory=factory)

    handles = await asyncio.gather(*(cache.get_connection() for _ in range(5)))

    assert len(factory.clients) == 1
    assert all(handle is handles[0] for handle in handles)
    assert handles[0] == {"name": "isothermica_test"}


async def test_cached_handle_is_reused():
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(), client_factory=factory)

    first = await cache.get_connection()
    second = await cache.get_connection()

    assert first is second
    assert cache.connect_count == 1


async def test_client_options_passed_through():
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(), client_factory=factory)
    await cache.get_connection()

    options = factory.clients[0].options
    assert options["maxPoolSize"] == 10
    assert options["serverSelectionTimeoutMS"] == 5000
    assert options["socketTimeoutMS"] == 45000


async def test_failure_resets_state_and_next_call_retries():
    factory = FakeClientFactory(fail_ping=True)
    cache = ConnectionCache(make_settings(), client_factory=factory)

    with pytest.raises(DatabaseUnavailableError):
        await cache.get_connection()

    assert not cache.is_connected
    assert cache.client is None
    assert factory.clients[0].closed

    factory.fail_ping = False
    await cache.get_connection()

    assert cache.is_connected
    assert len(factory.clients) == 2


async def test_missing_uri_is_unavailable():
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(MONGODB_URI=None), client_factory=factory)

    with pytest.raises(DatabaseUnavailableError):
        await cache.get_connection()
    assert factory.clients == []


async def test_model_registration_failure_is_unavailable(monkeypatch):
    async def broken_init_beanie(**kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(db, "init_beanie", broken_init_beanie)
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(), client_factory=factory)

    with pytest.raises(DatabaseUnavailableError):
        await cache.get_connection()
    assert factory.clients[0].closed
    assert not cache.is_connected


async def test_status_never_connects():
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(), client_factory=factory)

    assert await cache.status() == STATUS_DISCONNECTED
    assert factory.clients == []


async def test_status_reports_ping_result():
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(), client_factory=factory)
    await cache.get_connection()

    assert await cache.status() == STATUS_CONNECTED

    factory.clients[0].fail_ping = True
    assert await cache.status() == STATUS_PING_FAILED
    assert cache.last_ping_error == "server selection timeout"

    factory.clients[0].fail_ping = False
    assert await cache.status() == STATUS_CONNECTED
    assert cache.last_ping_error is None


async def test_close_resets_cache():
    factory = FakeClientFactory()
    cache = ConnectionCache(make_settings(), client_factory=factory)
    await cache.get_connection()

    await cache.close()

    assert factory.clients[0].closed
    assert not cache.is_connected
    assert await cache.status() == STATUS_DISCONNECTED


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("mongodb://localhost:27017/contatos_db", "contatos_db"),
        ("mongodb+srv://user:pw@cluster.example.net/site?retryWrites=true", "site"),
        ("mongodb://localhost:27017", "isothermica"),
        ("mongodb://localhost:27017/", "isothermica"),
    ],
)
def test_database_name_from_uri(uri, expected):
    assert database_name_from_uri(uri, "isothermica") == expected
