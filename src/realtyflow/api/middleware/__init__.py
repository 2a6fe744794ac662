"""HTTP middleware, listed in request order (outermost first)."""

from .logging import RequestLoggingMiddleware
from .errors import ErrorHandlingMiddleware
from .auth import AuthenticationMiddleware
from .context import RequestContextMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "ErrorHandlingMiddleware",
    "AuthenticationMiddleware",
    "RequestContextMiddleware",
]
