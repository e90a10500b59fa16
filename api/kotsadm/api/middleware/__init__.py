"""HTTP middleware."""

from .logging import LoggingMiddleware
from .session import SessionMiddleware

__all__ = ["LoggingMiddleware", "SessionMiddleware"]
