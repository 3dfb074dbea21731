"""Base async HTTP client with lazy initialization and context manager support."""

import itertools
from typing import Optional

import httpx

from .async_context import AsyncContextManager


class CookieRotator:
    """Round-robin over a pool of session cookies.

    An empty pool yields None, meaning no Cookie header is sent.
    """

    def __init__(self, cookies: list[str] | None = None):
        self._cookies = [c for c in (cookies or []) if c]
        self._cycle = itertools.cycle(self._cookies) if self._cookies else None

    def __len__(self) -> int:
        return len(self._cookies)

    def next(self) -> str | None:
        if self._cycle is None:
            return None
        return next(self._cycle)


class BaseAsyncHttpClient(AsyncContextManager):
    """
    Base async HTTP client with lazy initialization.

    Provides:
    - Lazy httpx.AsyncClient initialization
    - Bank token header on every request
    - Per-request cookie rotation
    - Context manager support
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token: str | None = None,
        cookies: list[str] | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = token
        self._cookies = CookieRotator(cookies)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"tikutoken": self.token} if self.token else {}
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    def _request_headers(self) -> dict[str, str]:
        """Headers that vary per request (the rotated cookie)."""
        cookie = self._cookies.next()
        return {"Cookie": cookie} if cookie else {}

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
