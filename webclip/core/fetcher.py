"""
Page Fetcher
============

Downloads the page to clip with a plain HTTP GET.
No retries: a failed fetch fails the request.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from webclip.config.logging import get_logger
from webclip.config.settings import get_settings
from webclip.core.errors import PageFetchError, UpstreamFetchFailed

logger = get_logger(__name__)


@dataclass
class FetchedPage:
    """Raw page body and the URL it was requested from."""

    url: str
    status: int
    content: bytes
    content_type: Optional[str] = None


class PageFetcher:
    """aiohttp-based page downloader with a lazily created session."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.user_agent = user_agent or settings.user_agent
        self.logger: Any = logger.bind(component="page_fetcher")  # structlog.BoundLoggerBase
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout, headers={"User-Agent": self.user_agent}
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> FetchedPage:
        """
        Download ``url``.

        Args:
            url: Absolute http(s) URL

        Returns:
            FetchedPage with the undecoded body

        Raises:
            UpstreamFetchFailed: If the server answers outside 2xx/3xx
            PageFetchError: If the request cannot be completed
        """
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 400:
                    self.logger.warning(
                        "Upstream returned bad status", url=url, status=response.status
                    )
                    raise UpstreamFetchFailed(response.status)
                content = await response.read()
                self.logger.debug(
                    "Page fetched", url=url, status=response.status, size=len(content)
                )
                return FetchedPage(
                    url=url,
                    status=response.status,
                    content=content,
                    content_type=response.headers.get("Content-Type"),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error("Page fetch failed", url=url, error=str(e))
            raise PageFetchError(f"fetch {url}: {e}") from e
