"""Storage backends and their FastAPI wiring.

- ``StorageBackend``: the contract the transfer routes call
- ``LocalBackend`` / ``MemoryBackend``: bundled implementations
- ``add_storage`` / ``get_storage``: app-state registration and dependency
"""

from .add import add_storage, easy_storage, get_storage
from .backends import LocalBackend, MemoryBackend
from .base import BlobReader, StorageBackend

__all__ = [
    "BlobReader",
    "StorageBackend",
    "LocalBackend",
    "MemoryBackend",
    "add_storage",
    "easy_storage",
    "get_storage",
]
