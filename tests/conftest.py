import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from contact_api.config import Settings
from contact_api.db import ConnectionCache
from contact_api.limiter import limiter
from contact_api.main import create_app

TEST_URI = "mongodb://localhost:27017/isothermica_test"


class _MockAdmin:
    async def command(self, name, **kwargs):
        return {"ok": 1.0}


class MockMongoClient:
    """In-memory stand-in for AsyncIOMotorClient built on mongomock"""

    def __init__(self, uri, **options):
        self._client = AsyncMongoMockClient(tz_aware=True)
        self.admin = _MockAdmin()
        self.closed = False

    def get_database(self, name):
        return self._client.get_database(name)

    async def list_database_names(self):
        return await self._client.list_database_names()

    def close(self):
        self.closed = True


def make_settings(**overrides) -> Settings:
    values = {"MONGODB_URI": TEST_URI, "ENVIRONMENT": "development"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def client_factory():
    """Build a TestClient for an app configured with the given settings"""
    clients = []

    def _make(**overrides):
        app = create_app(make_settings(**overrides), client_factory=MockMongoClient)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(client_factory):
    return client_factory()


@pytest.fixture
async def connection_cache():
    cache = ConnectionCache(make_settings(), client_factory=MockMongoClient)
    await cache.get_connection()
    yield cache
    await cache.close()


@pytest.fixture
def valid_payload():
    return {
        "name": "Ana Silva",
        "email": "ana@example.com",
        "phone": "",
        "service": "dutos",
        "message": "Preciso de um orçamento para isolamento térmico.",
    }
