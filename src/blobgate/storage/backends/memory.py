"""In-memory storage backend.

Handy for tests and local development. Data is lost on restart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from blobgate.storage.base import (
    DEFAULT_CHUNK_SIZE,
    BlobNotFoundError,
    ByteStream,
    DocumentNotFoundError,
    GenerationMismatchError,
)
from blobgate.storage.locks import KeyedLocks

logger = logging.getLogger(__name__)


@dataclass
class _Blob:
    data: bytes
    generation: int


async def _chunks(data: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    for start in range(0, len(data), chunk_size):
        yield data[start : start + chunk_size]


async def _collect(body: ByteStream) -> bytes:
    buf = bytearray()
    async for chunk in body:
        buf.extend(chunk)
    return bytes(buf)


class MemoryBackend:
    """Dict-backed store with per-key locks for generation compare-and-swap.

    Example:
        >>> backend = MemoryBackend()
        >>> gen = await backend.store_blob("u1", "b1", body, 0)
        >>> gen
        1
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._chunk_size = chunk_size
        self._documents: dict[tuple[str, str], bytes] = {}
        self._blobs: dict[tuple[str, str], _Blob] = {}
        self._locks = KeyedLocks()

    async def store_document(self, user_id: str, document_id: str, body: ByteStream) -> None:
        self._documents[(user_id, document_id)] = await _collect(body)

    async def get_document(self, user_id: str, document_id: str) -> AsyncIterator[bytes]:
        try:
            data = self._documents[(user_id, document_id)]
        except KeyError:
            raise DocumentNotFoundError(user_id, document_id) from None
        return _chunks(data, self._chunk_size)

    async def load_blob(self, user_id: str, blob_id: str) -> tuple[AsyncIterator[bytes], int]:
        blob = self._blobs.get((user_id, blob_id))
        if blob is None:
            raise BlobNotFoundError(user_id, blob_id)
        return _chunks(blob.data, self._chunk_size), blob.generation

    async def current_generation(self, user_id: str, blob_id: str) -> int:
        blob = self._blobs.get((user_id, blob_id))
        return blob.generation if blob else 0

    async def store_blob(
        self,
        user_id: str,
        blob_id: str,
        body: ByteStream,
        expected_generation: int,
    ) -> int:
        key = (user_id, blob_id)
        # Reject stale writers before reading their body.
        current = await self.current_generation(user_id, blob_id)
        if current != expected_generation:
            raise GenerationMismatchError(expected_generation, current)

        data = await _collect(body)

        async with self._locks.hold(key):
            current = await self.current_generation(user_id, blob_id)
            if current != expected_generation:
                raise GenerationMismatchError(expected_generation, current)
            new_generation = current + 1
            self._blobs[key] = _Blob(data=data, generation=new_generation)

        logger.debug("Stored blob %s/%s at generation %d", user_id, blob_id, new_generation)
        return new_generation

    def clear(self) -> None:
        self._documents.clear()
        self._blobs.clear()


__all__ = ["MemoryBackend"]
