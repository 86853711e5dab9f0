"""
PDF Generator
=============

Playwright-based PDF generation.
Drives a single headless Chromium instance; every render gets its own
browser context so requests never share page state.
"""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from playwright.async_api import Browser, Error as PlaywrightError, Page, async_playwright

from webclip.config.logging import get_logger
from webclip.config.settings import get_settings
from webclip.core.rendering.renderer import DocumentRenderer, RenderResult, RenderSource
from webclip.models.params import ORIENTATION_LANDSCAPE, PAGE_SIZES

logger = get_logger(__name__)

MIN_SCALE = 0.1
MAX_SCALE = 2.0

VIEWPORT_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")

GRAYSCALE_CSS = "html{filter:grayscale(100%)!important}"

PREPARE_PAGE_JS = """
({title, host, external, internal}) => {
  if (title !== null) {
    document.title = title;
  }
  if (external || internal) {
    for (const a of document.querySelectorAll('a[href]')) {
      const sameHost = a.host === host;
      if ((sameHost && internal) || (!sameHost && external)) {
        a.removeAttribute('href');
      }
    }
  }
}
"""


class PDFGenerationError(Exception):
    """Exception raised when the PDF renderer cannot be started."""

    pass


class PlaywrightPDFRenderer(DocumentRenderer):
    """Chromium PDF renderer."""

    def __init__(self, headless: Optional[bool] = None, timeout: Optional[int] = None):
        self.settings = get_settings()
        self.headless = self.settings.playwright_headless if headless is None else headless
        self.timeout = self.settings.playwright_timeout if timeout is None else timeout
        self.logger: Any = logger.bind(renderer="playwright")  # structlog.BoundLoggerBase
        self._playwright = None
        self._browser: Optional[Browser] = None

    @property
    def is_ready(self) -> bool:
        return self._browser is not None

    async def initialize(self) -> None:
        """Start Playwright and launch Chromium."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=[
                    "--no-sandbox",
                    "--disable-setuid-sandbox",
                    "--disable-dev-shm-usage",
                ],
            )
            self.logger.info("PDF renderer initialized", headless=self.headless)
        except Exception as e:
            self.logger.error("Failed to initialize PDF renderer", error=str(e))
            raise PDFGenerationError(f"Browser initialization failed: {e}")

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self.logger.info("PDF renderer closed")

    async def render(self, source: RenderSource, options: Dict[str, Any]) -> RenderResult:
        """
        Render a page to PDF.

        Navigation and page preparation failures are recorded but do not stop
        printing: whatever the page shows is still turned into a document.
        Only a failed print yields empty content.

        Args:
            source: URL or markup to render
            options: Renderer options built from clipping parameters

        Returns:
            RenderResult with PDF bytes and the collected error messages
        """
        if self._browser is None:
            return RenderResult(content=b"", error="browser not initialized")

        errors: List[str] = []
        try:
            context = await self._browser.new_context(**self.context_args(options, errors))
        except PlaywrightError as e:
            self.logger.error("Browser context creation failed", error=str(e))
            return RenderResult(content=b"", error=f"context: {e}")

        try:
            page = await context.new_page()
            page.set_default_timeout(self.timeout)

            if options.get("no_images"):
                await page.route("**/*", self._handle_route)  # type: ignore[arg-type]

            try:
                if source.url is not None:
                    await page.goto(source.url, wait_until="load")
                else:
                    await page.set_content(source.html or "", wait_until="load")
            except PlaywrightError as e:
                errors.append(f"navigation: {e}")

            try:
                await self._prepare_page(page, source, options)
            except PlaywrightError as e:
                errors.append(f"page preparation: {e}")

            try:
                content = await page.pdf(**self.pdf_args(options))
            except PlaywrightError as e:
                errors.append(f"pdf: {e}")
                content = b""
        finally:
            await context.close()

        error = "; ".join(errors) or None
        self.logger.info("PDF rendered", size=len(content), error=error)
        return RenderResult(content=content, error=error)

    def context_args(self, options: Dict[str, Any], errors: List[str]) -> Dict[str, Any]:
        """Browser context arguments for ``options``."""
        args: Dict[str, Any] = {"java_script_enabled": bool(options.get("enable_javascript"))}

        viewport = options.get("viewport_size")
        if viewport is not None:
            match = VIEWPORT_RE.match(viewport)
            if match:
                args["viewport"] = {"width": int(match.group(1)), "height": int(match.group(2))}
            else:
                errors.append(f"bad viewport size: {viewport}")
        return args

    def pdf_args(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """``Page.pdf`` keyword arguments for ``options``."""
        args: Dict[str, Any] = {"print_background": not options.get("no_background", False)}

        size = PAGE_SIZES.get(options.get("page_size") or "")
        if size is not None:
            args["width"], args["height"] = f"{size[0]}mm", f"{size[1]}mm"
        if options.get("page_width") is not None:
            args["width"] = f"{options['page_width']}mm"
        if options.get("page_height") is not None:
            args["height"] = f"{options['page_height']}mm"

        if options.get("orientation") is not None:
            args["landscape"] = options["orientation"] == ORIENTATION_LANDSCAPE

        margin = {
            side: f"{options[f'margin_{side}']}mm"
            for side in ("top", "right", "bottom", "left")
            if options.get(f"margin_{side}") is not None
        }
        if margin:
            args["margin"] = margin

        if options.get("zoom") is not None:
            args["scale"] = min(max(float(options["zoom"]), MIN_SCALE), MAX_SCALE)

        return args

    async def _prepare_page(self, page: Page, source: RenderSource, options: Dict[str, Any]) -> None:
        """Apply options that act on the loaded page."""
        if options.get("grayscale"):
            await page.add_style_tag(content=GRAYSCALE_CSS)

        title = options.get("title")
        external = bool(options.get("disable_external_links"))
        internal = bool(options.get("disable_internal_links"))
        if title is not None or external or internal:
            await page.evaluate(
                PREPARE_PAGE_JS,
                {
                    "title": title,
                    "host": urlsplit(source.origin).netloc,
                    "external": external,
                    "internal": internal,
                },
            )

    async def _handle_route(self, route: Any) -> None:  # type: ignore[misc]
        """Block image loading."""
        if route.request.resource_type == "image":  # type: ignore[attr-defined]
            await route.abort()  # type: ignore[attr-defined]
        else:
            await route.continue_()  # type: ignore[attr-defined]
