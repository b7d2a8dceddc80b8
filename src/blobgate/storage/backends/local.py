"""File-system storage backend.

Layout under ``base_path``::

    users/<user_id>/documents/<document_id>
    users/<user_id>/sync/<blob_id>
    users/<user_id>/sync/.generation/<blob_id>

Blob writes land in a temporary file first and are renamed into place while
holding the key's lock, so readers never observe a partial blob. A commit
that fails after the rename puts the previous blob back, so the generation
file always describes the bytes next to it.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import AsyncIterator, BinaryIO

from blobgate.storage.base import (
    DEFAULT_CHUNK_SIZE,
    BackendError,
    BlobNotFoundError,
    ByteStream,
    DocumentNotFoundError,
    GenerationMismatchError,
    check_key_part,
)
from blobgate.storage.locks import KeyedLocks

logger = logging.getLogger(__name__)


def _unlink_quiet(path: Path) -> None:
    path.unlink(missing_ok=True)


class _FileReader:
    """Chunked reader over an already-open file."""

    def __init__(self, handle: BinaryIO, chunk_size: int):
        self._handle = handle
        self._chunk_size = chunk_size
        self._closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await asyncio.to_thread(self._handle.read, self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await asyncio.to_thread(self._handle.close)


class LocalBackend:
    def __init__(self, base_path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.base_path = Path(base_path)
        self._chunk_size = chunk_size
        self._locks = KeyedLocks()

    # ------------------------------------------------------------------ paths

    def _user_dir(self, user_id: str) -> Path:
        return self.base_path / "users" / check_key_part(user_id)

    def _document_path(self, user_id: str, document_id: str) -> Path:
        return self._user_dir(user_id) / "documents" / check_key_part(document_id)

    def _blob_path(self, user_id: str, blob_id: str) -> Path:
        return self._user_dir(user_id) / "sync" / check_key_part(blob_id)

    def _generation_path(self, user_id: str, blob_id: str) -> Path:
        return self._user_dir(user_id) / "sync" / ".generation" / check_key_part(blob_id)

    # ---------------------------------------------------------------- helpers

    async def _write_temp(self, target: Path, body: ByteStream) -> Path:
        await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        handle = await asyncio.to_thread(open, tmp, "wb")
        try:
            async for chunk in body:
                await asyncio.to_thread(handle.write, chunk)
            await asyncio.to_thread(handle.flush)
        except BaseException:
            await asyncio.to_thread(handle.close)
            await asyncio.to_thread(_unlink_quiet, tmp)
            raise
        await asyncio.to_thread(handle.close)
        return tmp

    def _read_generation_sync(self, user_id: str, blob_id: str) -> int:
        path = self._generation_path(user_id, blob_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return 0
        try:
            return int(raw.strip())
        except ValueError as exc:
            raise BackendError(f"corrupt generation file {path}") from exc

    async def _read_generation(self, user_id: str, blob_id: str) -> int:
        return await asyncio.to_thread(self._read_generation_sync, user_id, blob_id)

    def _write_generation_sync(self, user_id: str, blob_id: str, generation: int) -> None:
        path = self._generation_path(user_id, blob_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_text(str(generation), encoding="utf-8")
            os.replace(tmp, path)
        except BaseException:
            _unlink_quiet(tmp)
            raise

    def _commit_blob_sync(self, user_id: str, blob_id: str, tmp: Path, generation: int) -> None:
        """Install ``tmp`` as the blob and record ``generation``, or change nothing.

        The previous blob is moved aside first and restored if either step fails.
        """
        target = self._blob_path(user_id, blob_id)
        backup = target.with_name(f".{target.name}.{uuid.uuid4().hex}.bak")
        had_previous = target.exists()
        if had_previous:
            os.replace(target, backup)
        try:
            os.replace(tmp, target)
            self._write_generation_sync(user_id, blob_id, generation)
        except BaseException:
            if had_previous:
                os.replace(backup, target)
            else:
                _unlink_quiet(target)
            raise
        if had_previous:
            _unlink_quiet(backup)

    async def _open(self, path: Path) -> _FileReader:
        handle = await asyncio.to_thread(open, path, "rb")
        return _FileReader(handle, self._chunk_size)

    # -------------------------------------------------------------- documents

    async def store_document(self, user_id: str, document_id: str, body: ByteStream) -> None:
        target = self._document_path(user_id, document_id)
        try:
            tmp = await self._write_temp(target, body)
            await asyncio.to_thread(os.replace, tmp, target)
        except OSError as exc:
            raise BackendError(f"failed to store document {user_id}/{document_id}: {exc}") from exc

    async def get_document(self, user_id: str, document_id: str) -> _FileReader:
        path = self._document_path(user_id, document_id)
        try:
            return await self._open(path)
        except FileNotFoundError:
            raise DocumentNotFoundError(user_id, document_id) from None
        except OSError as exc:
            raise BackendError(f"failed to open document {user_id}/{document_id}: {exc}") from exc

    # ------------------------------------------------------------------ blobs

    async def current_generation(self, user_id: str, blob_id: str) -> int:
        return await self._read_generation(user_id, blob_id)

    async def load_blob(self, user_id: str, blob_id: str) -> tuple[_FileReader, int]:
        path = self._blob_path(user_id, blob_id)
        async with self._locks.hold((user_id, blob_id)):
            try:
                reader = await self._open(path)
            except FileNotFoundError:
                raise BlobNotFoundError(user_id, blob_id) from None
            except OSError as exc:
                raise BackendError(f"failed to open blob {user_id}/{blob_id}: {exc}") from exc
            try:
                generation = await self._read_generation(user_id, blob_id)
            except BaseException:
                await reader.aclose()
                raise
        return reader, generation

    async def store_blob(
        self,
        user_id: str,
        blob_id: str,
        body: ByteStream,
        expected_generation: int,
    ) -> int:
        key = (user_id, blob_id)
        target = self._blob_path(user_id, blob_id)

        current = await self._read_generation(user_id, blob_id)
        if current != expected_generation:
            raise GenerationMismatchError(expected_generation, current)

        try:
            tmp = await self._write_temp(target, body)
        except OSError as exc:
            raise BackendError(f"failed to write blob {user_id}/{blob_id}: {exc}") from exc

        try:
            async with self._locks.hold(key):
                current = await self._read_generation(user_id, blob_id)
                if current != expected_generation:
                    raise GenerationMismatchError(expected_generation, current)
                new_generation = current + 1
                await asyncio.to_thread(self._commit_blob_sync, user_id, blob_id, tmp, new_generation)
        except OSError as exc:
            raise BackendError(f"failed to commit blob {user_id}/{blob_id}: {exc}") from exc
        finally:
            await asyncio.to_thread(_unlink_quiet, tmp)

        logger.debug("Stored blob %s/%s at generation %d", user_id, blob_id, new_generation)
        return new_generation


__all__ = ["LocalBackend"]
