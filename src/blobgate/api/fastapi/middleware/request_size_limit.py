from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject uploads whose declared Content-Length exceeds ``max_bytes``.

    Chunked bodies without a length pass through; the backend sees them as a
    stream either way.
    """

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request, call_next):
        length = request.headers.get("content-length")
        try:
            size = int(length) if length is not None else None
        except ValueError:
            size = None
        if size is not None and size > self.max_bytes:
            return JSONResponse(
                status_code=413,
                content={
                    "title": "Payload Too Large",
                    "status": 413,
                    "detail": f"Request body exceeds {self.max_bytes} bytes.",
                },
            )
        return await call_next(request)
