"""Tests for /storage/{token} document transfer."""

from __future__ import annotations

import time

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from blobgate.api.fastapi import create_app
from blobgate.auth.claims import issue_storage_token
from blobgate.exceptions import BackendError, DocumentNotFoundError
from blobgate.gateway import StorageGateway
from tests.conftest import SECRET
from tests.helpers import body_of, read_all


def _token(gateway, user_id="u1", document_id="doc1", **kwargs) -> str:
    return issue_storage_token(user_id, document_id, gateway.claims, **kwargs)


class RecordingBackend:
    """Backend double that records calls and can be told to fail."""

    def __init__(self, fail_with: Exception | None = None):
        self.fail_with = fail_with
        self.calls: list[str] = []
        self.closed = False

    async def store_document(self, user_id, document_id, body):
        self.calls.append("store_document")
        if self.fail_with:
            raise self.fail_with

    async def get_document(self, user_id, document_id):
        self.calls.append("get_document")
        if self.fail_with:
            raise self.fail_with
        backend = self

        class _Reader:
            async def __aiter__(self):
                yield b"payload"

            async def aclose(self):
                backend.closed = True

        return _Reader()

    async def load_blob(self, user_id, blob_id):
        raise NotImplementedError

    async def store_blob(self, user_id, blob_id, body, expected_generation):
        raise NotImplementedError

    async def current_generation(self, user_id, blob_id):
        return 0


@pytest_asyncio.fixture
async def recording_client(settings, gateway):
    backend = RecordingBackend()
    app = create_app(settings, backend=backend, gateway=gateway)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c, backend


@pytest.mark.asyncio
class TestUploadDocument:
    async def test_upload_then_download(self, client, gateway, memory_backend):
        token = _token(gateway)

        r = await client.put(f"/storage/{token}", content=b"document bytes")
        assert r.status_code == 200
        assert r.json() == {}

        reader = await memory_backend.get_document("u1", "doc1")
        assert await read_all(reader) == b"document bytes"

    async def test_wrong_audience_is_400(self, client, memory_backend):
        token = jwt.encode(
            {"UserID": "u1", "DocumentID": "doc1", "aud": "sync", "exp": int(time.time()) + 60},
            SECRET,
            algorithm="HS256",
        )
        r = await client.put(f"/storage/{token}", content=b"x")
        assert r.status_code == 400
        with pytest.raises(DocumentNotFoundError):
            await memory_backend.get_document("u1", "doc1")

    async def test_expired_token_is_400(self, client, gateway):
        token = _token(gateway, ttl_seconds=1, now=int(time.time()) - 60)
        r = await client.put(f"/storage/{token}", content=b"x")
        assert r.status_code == 400

    async def test_forged_token_is_400(self, client):
        forged = StorageGateway.from_secret("not the server secret at all!!")
        r = await client.put(f"/storage/{_token(forged)}", content=b"x")
        assert r.status_code == 400

    async def test_garbage_token_is_400_without_backend_call(self, recording_client):
        client, backend = recording_client
        r = await client.put("/storage/garbage", content=b"x")
        assert r.status_code == 400
        assert backend.calls == []

    async def test_backend_failure_is_500(self, recording_client, gateway):
        client, backend = recording_client
        backend.fail_with = BackendError("disk full")
        r = await client.put(f"/storage/{_token(gateway)}", content=b"x")
        assert r.status_code == 500
        assert backend.calls == ["store_document"]


@pytest.mark.asyncio
class TestDownloadDocument:
    async def test_streams_octet_stream(self, client, gateway, memory_backend):
        await memory_backend.store_document("u1", "doc1", body_of(b"0123456789"))

        r = await client.get(f"/storage/{_token(gateway)}")
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/octet-stream"
        assert "content-length" not in r.headers
        assert r.content == b"0123456789"

    async def test_wrong_audience_is_400(self, client, memory_backend):
        await memory_backend.store_document("u1", "doc1", body_of(b"secret"))
        token = jwt.encode({"UserID": "u1", "DocumentID": "doc1", "aud": "other"}, SECRET, algorithm="HS256")
        r = await client.get(f"/storage/{token}")
        assert r.status_code == 400

    async def test_missing_document_is_404_by_default(self, client, gateway):
        r = await client.get(f"/storage/{_token(gateway, document_id='missing')}")
        assert r.status_code == 404

    async def test_missing_document_is_500_when_not_uniform(self, settings, memory_backend):
        gateway = StorageGateway.from_secret(SECRET, uniform_not_found=False)
        app = create_app(settings, backend=memory_backend, gateway=gateway)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
            r = await c.get(f"/storage/{_token(gateway, document_id='missing')}")
        assert r.status_code == 500

    async def test_backend_failure_is_500(self, recording_client, gateway):
        client, backend = recording_client
        backend.fail_with = BackendError("io error")
        r = await client.get(f"/storage/{_token(gateway)}")
        assert r.status_code == 500
        assert backend.calls == ["get_document"]

    async def test_reader_closed_after_response(self, recording_client, gateway):
        client, backend = recording_client
        r = await client.get(f"/storage/{_token(gateway)}")
        assert r.status_code == 200
        assert r.content == b"payload"
        assert backend.closed is True
        assert backend.calls == ["get_document"]
