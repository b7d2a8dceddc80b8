from __future__ import annotations

from typing import Annotated

from fastapi import Depends, FastAPI, Request

from blobgate.gateway import StorageGateway
from blobgate.storage.add import get_storage
from blobgate.storage.base import StorageBackend


def add_gateway(app: FastAPI, gateway: StorageGateway) -> StorageGateway:
    app.state.gateway = gateway
    return gateway


def get_gateway(request: Request) -> StorageGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError("Gateway not initialized. Call add_gateway(app, gateway) first.")
    return gateway


GatewayDep = Annotated[StorageGateway, Depends(get_gateway)]
StorageDep = Annotated[StorageBackend, Depends(get_storage)]

__all__ = ["add_gateway", "get_gateway", "GatewayDep", "StorageDep"]
