from .catchall import CatchAllExceptionMiddleware
from .handlers import register_error_handlers, status_for

__all__ = ["CatchAllExceptionMiddleware", "register_error_handlers", "status_for"]
