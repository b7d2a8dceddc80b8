"""
Root conftest.py for blobgate tests.

Provides:
1. Marker registration
2. A shared secret, gateway and backends
3. A FastAPI app plus async client wired to an in-memory backend
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from blobgate.api.fastapi import create_app
from blobgate.app.settings import GatewaySettings
from blobgate.gateway import StorageGateway
from blobgate.storage.backends import MemoryBackend

SECRET = "test_secret_key_32_chars_minimum!"
FAR_FUTURE = "1999999999"


def pytest_collection_modifyitems(config, items):
    """Mark security tests so `-m security` selects them."""
    for item in items:
        norm = str(item.fspath).replace("\\", "/")
        if "/tests/unit/security/" in norm or "/tests/unit/auth/" in norm:
            item.add_marker(pytest.mark.security)


def pytest_configure(config):
    for name, desc in [
        ("security", "Signing and token verification tests"),
        ("storage", "Storage backend tests"),
        ("concurrency", "Generation compare-and-swap tests"),
        ("acceptance", "End-to-end gateway scenarios"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


# =============================================================================
# GATEWAY FIXTURES
# =============================================================================


@pytest.fixture
def secret() -> bytes:
    return SECRET.encode()


@pytest.fixture
def settings(tmp_path) -> GatewaySettings:
    return GatewaySettings(jwt_secret=SECRET, backend="memory", data_dir=tmp_path)


@pytest.fixture
def gateway(settings) -> StorageGateway:
    return StorageGateway.from_settings(settings)


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend(chunk_size=4)


@pytest.fixture
def app(settings, memory_backend, gateway) -> FastAPI:
    return create_app(settings, backend=memory_backend, gateway=gateway)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
