from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from blobgate.exceptions import (
    AuthenticationError,
    BackendError,
    BlobGateError,
    NotFoundError,
    PreconditionError,
    SignatureError,
)

logger = logging.getLogger(__name__)


def status_for(exc: BlobGateError) -> int:
    if isinstance(exc, SignatureError):
        return 403
    if isinstance(exc, AuthenticationError):
        return 400
    if isinstance(exc, PreconditionError):
        return 412
    if isinstance(exc, NotFoundError):
        return 404
    return 500


def problem(status: int, title: str, detail: str | None = None) -> JSONResponse:
    body: dict[str, object] = {"title": title, "status": status}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Render blobgate errors that escape a route as problem JSON."""

    @app.exception_handler(BlobGateError)
    async def _blobgate_error(request: Request, exc: BlobGateError):
        status = status_for(exc)
        if isinstance(exc, BackendError) or status >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc, exc_info=exc)
            return problem(status, "Internal Server Error")
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return problem(status, type(exc).__name__)
