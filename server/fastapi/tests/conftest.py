import os

# ChatOpenAI and AsyncOpenAI refuse to construct without a key
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("OPENWEATHER_API_KEY", "test-weather-key")

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

import main
from gateways import WeatherGateway
from store import LocationStore


class FakeCursor:
    """Enough of pymongo's AsyncCursor for the store: sort() then to_list()."""

    def __init__(self, docs):
        self.docs = docs

    def sort(self, key, direction):
        self.docs = sorted(self.docs, key=lambda d: d[key], reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        return list(self.docs if length is None else self.docs[:length])


class FakeCollection:
    """In-memory stand-in for an AsyncCollection holding location documents."""

    def __init__(self):
        self.docs = []
        self.indexes = []
        self._next_id = 0

    async def create_index(self, key, unique=False):
        self.indexes.append((key, unique))
        return f"{key}_1"

    async def insert_one(self, doc):
        if any(d["locationId"] == doc["locationId"] for d in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error")
        self._next_id += 1
        doc["_id"] = self._next_id
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=self._next_id)

    def find(self, filter=None, projection=None):
        return FakeCursor([self._project(d, projection) for d in self.docs if self._matches(d, filter)])

    async def find_one_and_delete(self, filter, projection=None):
        for i, doc in enumerate(self.docs):
            if self._matches(doc, filter):
                del self.docs[i]
                return self._project(doc, projection)
        return None

    @staticmethod
    def _matches(doc, filter):
        return all(doc.get(k) == v for k, v in (filter or {}).items())

    @staticmethod
    def _project(doc, projection):
        excluded = {k for k, v in (projection or {}).items() if not v}
        return {k: v for k, v in doc.items() if k not in excluded}


class BrokenCollection:
    """Every call fails the way an unreachable MongoDB does."""

    def _fail(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    async def create_index(self, *args, **kwargs):
        self._fail()

    async def insert_one(self, *args, **kwargs):
        self._fail()

    def find(self, *args, **kwargs):
        self._fail()

    async def find_one_and_delete(self, *args, **kwargs):
        self._fail()


class FakeWeatherProvider:
    """Records requests and answers like the OpenWeather current weather endpoint."""

    def __init__(self, status_code=200, payload=None):
        self.requests = []
        self.status_code = status_code
        self.payload = payload if payload is not None else {
            "main": {"temp": 21.5, "humidity": 40},
            "wind": {"speed": 3.6, "deg": 250},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


def make_image_client(url: str = "https://images.example/city.png", error: Exception | None = None):
    client = MagicMock()
    if error is not None:
        client.images.generate = AsyncMock(side_effect=error)
    else:
        client.images.generate = AsyncMock(
            return_value=SimpleNamespace(data=[SimpleNamespace(url=url)])
        )
    return client


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def store(collection):
    return LocationStore(collection)


@pytest.fixture
def weather_provider():
    return FakeWeatherProvider()


@pytest.fixture
def weather_gateway(weather_provider):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(weather_provider))
    return WeatherGateway(http_client, "test-weather-key", "https://weather.example/data/2.5/weather")


@pytest.fixture
def image_client():
    return make_image_client()


@pytest.fixture
def client(store, weather_gateway, image_client):
    """TestClient with the upstream handles swapped for fakes."""
    main.app.dependency_overrides[main.get_store] = lambda: store
    main.app.dependency_overrides[main.get_weather_gateway] = lambda: weather_gateway
    main.app.dependency_overrides[main.get_image_client] = lambda: image_client
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()
