import asyncio
from typing import Any

import httpx
from loguru import logger

from app.core.version import __version__

DEFAULT_USER_AGENT = f"Artlens/{__version__} (+https://github.com/artlens/artlens)"


class BaseClient:
    """
    Base asynchronous HTTP client shared by the content sources.

    ``max_retries`` counts total attempts. Retries only happen inside a source's
    own request budget; the fan-out layer never retries a failed source.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        max_retries: int = 1,
        headers: dict[str, str] | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.headers = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json", **(headers or {})}
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, headers=self.headers, follow_redirects=True
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        client = await self.get_client()
        tries = max(1, self.max_retries)
        last_exception: Exception | None = None

        for attempt in range(1, tries + 1):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                last_exception = e
                if attempt < tries:
                    wait_time = 0.5 * (2 ** (attempt - 1))
                    logger.warning(
                        f"Request failed ({method} {self.base_url}{url}): {e}. "
                        f"Retrying in {wait_time}s... (Attempt {attempt}/{tries})"
                    )
                    await asyncio.sleep(wait_time)

        raise last_exception or httpx.RequestError("Request failed for unknown reasons")

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> Any:
        """Perform a GET request and return the JSON response."""
        response = await self._request("GET", url, params=params, **kwargs)
        return response.json()

    async def get_text(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> str:
        """Perform a GET request and return the body as text (XML APIs)."""
        response = await self._request("GET", url, params=params, **kwargs)
        return response.text

    async def head(self, url: str, **kwargs) -> httpx.Response:
        """Perform a HEAD request and return the raw response."""
        return await self._request("HEAD", url, **kwargs)
