"""HTTP client for scraping providers: rotating browser identity, timeouts, JSON/text helpers."""
import logging
import random
from typing import Any

import httpx

from playscanner.core.constants import HTTP_REQUEST_TIMEOUT_SECONDS
from playscanner.core.errors import RateLimitError, ScrapingError

logger = logging.getLogger(__name__)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
)

BROWSER_HEADERS = {
    "Accept": "application/json, text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-GB,en-US;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Ch-Ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
    "DNT": "1",
}


class ScrapingClient:
    """
    Thin async wrapper around httpx. One AsyncClient per request so the client can be shared
    across event loops (API server loop and scheduler job loops).
    """

    def __init__(
        self,
        provider: str,
        *,
        timeout: float = HTTP_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._provider = provider
        self._timeout = timeout
        self._transport = transport

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        h = {"User-Agent": random.choice(USER_AGENTS), **BROWSER_HEADERS}
        if extra:
            h.update(extra)
        return h

    async def fetch(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """GET url. Raises RateLimitError on 429, ScrapingError on other non-2xx or transport errors."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                r = await client.get(url, params=params, headers=self._headers(headers))
        except httpx.TimeoutException as e:
            raise ScrapingError(f"Timeout after {self._timeout}s for {url}", self._provider) from e
        except httpx.HTTPError as e:
            raise ScrapingError(f"Request failed for {url}: {e}", self._provider) from e
        if r.status_code == 429:
            raise RateLimitError(self._provider)
        if not r.is_success:
            raise ScrapingError(f"HTTP {r.status_code} for {url}", self._provider, r.status_code)
        return r

    async def fetch_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        h = {
            "Accept": "application/json, text/plain, */*",
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
        }
        if headers:
            h.update(headers)
        r = await self.fetch(url, params=params, headers=h)
        try:
            return r.json()
        except ValueError as e:
            raise ScrapingError(f"Invalid JSON from {url}", self._provider, r.status_code) from e

    async def fetch_text(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        r = await self.fetch(url, params=params, headers=headers)
        return r.text
