from __future__ import annotations

import logging

from fastapi import FastAPI

from blobgate.api.fastapi.deps import add_gateway, get_gateway
from blobgate.api.fastapi.middleware.errors import (
    CatchAllExceptionMiddleware,
    register_error_handlers,
)
from blobgate.api.fastapi.middleware.request_size_limit import RequestSizeLimitMiddleware
from blobgate.api.fastapi.routers import register_all_routers
from blobgate.app.core.env import get_env
from blobgate.app.settings import GatewaySettings, get_gateway_settings
from blobgate.gateway import StorageGateway
from blobgate.storage.add import add_storage, easy_storage
from blobgate.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def create_app(
        settings: GatewaySettings | None = None,
        *,
        backend: StorageBackend | None = None,
        gateway: StorageGateway | None = None,
) -> FastAPI:
    """Build the storage gateway application.

    ``backend`` and ``gateway`` default to what ``settings`` describes; pass
    them explicitly to share a backend between apps or to inject a different
    claims provider.
    """
    settings = settings or get_gateway_settings()

    app = FastAPI(title="blobgate", version="0.1.0")

    if settings.max_request_bytes:
        app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_bytes)
    app.add_middleware(CatchAllExceptionMiddleware)
    register_error_handlers(app)

    add_storage(app, backend or easy_storage(settings))
    add_gateway(app, gateway or StorageGateway.from_settings(settings))

    register_all_routers(app, base_package="blobgate.api.fastapi.routers")

    logger.info(f"blobgate initialized [env: {get_env()}, backend: {type(app.state.storage).__name__}]")
    return app


__all__ = ["create_app", "add_gateway", "get_gateway"]
