"""Core utilities for async HTTP clients and error handling."""

from .async_context import AsyncContextManager
from .async_http_client import (
    BaseAsyncHttpClient,
    CookieRotator,
)
from .http_errors import json_body, safe_http_request

__all__ = [
    "AsyncContextManager",
    "BaseAsyncHttpClient",
    "CookieRotator",
    "json_body",
    "safe_http_request",
]
