import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import asyncio
from typing import Callable, List, Optional

import httpx
import pytest
import pytest_asyncio

from lifecycle.task_registry import TaskRegistry
from models.config import CatalogConfig, CatalogTarget
from services.catalog_client import CatalogClient
from services.descriptor_builder import registration_from_config
from utils.logger import configure_logger, LogLevel


@pytest.fixture(autouse=True)
def quiet_logger():
    configure_logger(min_level=LogLevel.WARN, use_colors=False)
    yield
    configure_logger(min_level=LogLevel.INFO, use_colors=True)


@pytest.fixture(autouse=True)
def fresh_task_registry():
    TaskRegistry.reset()
    yield
    TaskRegistry.reset()


class FakeCatalog:
    """
    In-memory service catalog behind httpx.MockTransport.

    Records every request; responses come from `responder`, a callable
    (request) -> httpx.Response (or raising) that tests can swap.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.entries = {}
        self.responder: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def methods(self, method: Optional[str] = None) -> List[httpx.Request]:
        return [r for r in self.requests if method is None or r.method == method]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responder is not None:
            result = self.responder(request)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return self._default(request)

    def _default(self, request: httpx.Request) -> httpx.Response:
        if request.method in ("PUT", "POST"):
            self.entries[request.url.path] = request.content
            return httpx.Response(200, json={})
        if request.method == "DELETE":
            self.entries.pop(request.url.path, None)
            return httpx.Response(200)
        return httpx.Response(405)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest_asyncio.fixture
async def catalog_client(fake_catalog):
    client = CatalogClient(timeout=1.0, transport=fake_catalog.transport)
    yield client
    await client.aclose()


@pytest.fixture
def catalog_config():
    return CatalogConfig(
        description="Test Device Catalog",
        public_addr="testhost",
        bind_addr="127.0.0.1",
        bind_port=8081,
        api_location="/dc",
        service_catalog=[CatalogTarget(endpoint="http://catalog.test/sc", ttl=1)],
    )


@pytest.fixture
def descriptor(catalog_config):
    return registration_from_config(catalog_config)
