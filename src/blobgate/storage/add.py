"""FastAPI wiring for storage backends."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request

from blobgate.app.settings import GatewaySettings
from blobgate.storage.backends import LocalBackend, MemoryBackend
from blobgate.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def easy_storage(settings: GatewaySettings) -> StorageBackend:
    """Build the backend named by ``settings.backend``."""
    if settings.backend == "memory":
        logger.warning("Using in-memory storage backend; data will not survive a restart")
        return MemoryBackend()
    return LocalBackend(base_path=settings.data_dir)


def add_storage(app: FastAPI, backend: StorageBackend) -> StorageBackend:
    """Register ``backend`` on ``app.state.storage``. A later call replaces it."""
    if getattr(app.state, "storage", None) is not None:
        logger.info("Replacing storage backend %s", type(app.state.storage).__name__)
    app.state.storage = backend
    logger.info("Storage backend registered: %s", type(backend).__name__)
    return backend


def get_storage(request: Request) -> StorageBackend:
    """FastAPI dependency returning the registered backend."""
    backend = getattr(request.app.state, "storage", None)
    if backend is None:
        raise RuntimeError("Storage not initialized. Call add_storage(app, backend) first.")
    return backend


__all__ = ["easy_storage", "add_storage", "get_storage"]
