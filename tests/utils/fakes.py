"""
Test Fakes
==========

In-memory stand-ins for the page fetcher and the document renderer.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from webclip.core.errors import UpstreamFetchFailed
from webclip.core.fetcher import FetchedPage
from webclip.core.rendering.renderer import DocumentRenderer, RenderResult, RenderSource

FAKE_PDF = b"%PDF-1.4 fake document"


class FakeRenderer(DocumentRenderer):
    """Renderer that records its calls and returns canned output."""

    def __init__(
        self,
        content: bytes = FAKE_PDF,
        error: Optional[str] = None,
        delay: float = 0.0,
    ):
        self.content = content
        self.error = error
        self.delay = delay
        self.calls: List[Tuple[RenderSource, Dict[str, Any]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.initialized = False
        self.closed = False
        self.release: Optional[asyncio.Event] = None

    @property
    def is_ready(self) -> bool:
        return self.initialized and not self.closed

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.closed = True

    async def render(self, source: RenderSource, options: Dict[str, Any]) -> RenderResult:
        self.calls.append((source, options))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.release is not None:
                await self.release.wait()
            elif self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return RenderResult(content=self.content, error=self.error)

    @property
    def last_source(self) -> RenderSource:
        return self.calls[-1][0]

    @property
    def last_options(self) -> Dict[str, Any]:
        return self.calls[-1][1]


class FakeFetcher:
    """Page fetcher serving fixture documents by URL."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, status: int = 200):
        self.pages = dict(pages or {})
        self.status = status
        self.requested: List[str] = []
        self.closed = False

    async def fetch(self, url: str) -> FetchedPage:
        self.requested.append(url)
        if not 200 <= self.status < 400:
            raise UpstreamFetchFailed(self.status)
        content = self.pages.get(url, "<html><body></body></html>")
        return FetchedPage(
            url=url, status=self.status, content=content.encode("utf-8"), content_type="text/html"
        )

    async def close(self) -> None:
        self.closed = True
