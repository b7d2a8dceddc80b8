from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)

class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                f"{type(exc).__name__} on {request.method} {request.url.path} (500)",
                exc_info=True,
                extra={"http_method": request.method, "route": request.url.path, "status_code": 500},
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": type(exc).__name__,
                    "detail": "Internal Server Error",
                }
            )
