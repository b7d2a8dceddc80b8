"""Storage backend contract.

The gateway never touches bytes directly: it hands request bodies to a
backend as async byte iterators and relays the readers a backend returns.

Generation semantics belong to the backend. ``store_blob`` must compare the
supplied generation with the stored one and write only on a match, atomically
with respect to other writers of the same ``(user_id, blob_id)`` key. A key
that was never written is at generation ``0``.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from blobgate.exceptions import (
    BackendError,
    BlobNotFoundError,
    DocumentNotFoundError,
    GenerationMismatchError,
    InvalidKeyError,
)

ByteStream = AsyncIterator[bytes]

DEFAULT_CHUNK_SIZE = 64 * 1024


def check_key_part(value: str) -> str:
    """Reject ids that could escape their namespace or shadow bookkeeping files."""
    if not value or value.startswith(".") or any(c in value for c in ("/", "\\", "\x00")):
        raise InvalidKeyError(value)
    return value


@runtime_checkable
class BlobReader(Protocol):
    """Readable byte stream that must be closed by whoever receives it."""

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class StorageBackend(Protocol):
    async def store_document(self, user_id: str, document_id: str, body: ByteStream) -> None:
        """Persist a whole document, replacing any previous content."""
        ...

    async def get_document(self, user_id: str, document_id: str) -> BlobReader:
        """Raises ``DocumentNotFoundError`` when nothing was stored."""
        ...

    async def load_blob(self, user_id: str, blob_id: str) -> tuple[BlobReader, int]:
        """Return a reader and the current generation, or raise ``BlobNotFoundError``."""
        ...

    async def store_blob(
        self,
        user_id: str,
        blob_id: str,
        body: ByteStream,
        expected_generation: int,
    ) -> int:
        """Compare-and-swap write. Returns the new generation or raises
        ``GenerationMismatchError`` without writing anything."""
        ...

    async def current_generation(self, user_id: str, blob_id: str) -> int: ...


__all__ = [
    "ByteStream",
    "BlobReader",
    "StorageBackend",
    "DEFAULT_CHUNK_SIZE",
    "check_key_part",
    "BackendError",
    "BlobNotFoundError",
    "DocumentNotFoundError",
    "GenerationMismatchError",
    "InvalidKeyError",
]
