"""
Unit Tests for PDF Generator
============================

Tests for the Playwright renderer: lifecycle, option mapping and error collection.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from webclip.core.rendering.pdf_generator import PDFGenerationError, PlaywrightPDFRenderer
from webclip.core.rendering.renderer import RenderSource, renderer_options
from webclip.models.params import ClipParams


@pytest.fixture
def renderer() -> PlaywrightPDFRenderer:
    """Renderer instance with explicit settings."""
    return PlaywrightPDFRenderer(headless=True, timeout=5000)


def attach_browser(renderer: PlaywrightPDFRenderer, pdf_bytes: bytes = b"%PDF-1.4"):
    """Give the renderer a mocked browser and return the mocked page and context."""
    page = AsyncMock()
    page.set_default_timeout = MagicMock()
    page.pdf.return_value = pdf_bytes
    context = AsyncMock()
    context.new_page.return_value = page
    browser = AsyncMock()
    browser.new_context.return_value = context
    renderer._browser = browser
    return browser, context, page


class TestPDFGenerationError:
    """Test PDF generation error handling."""

    def test_error_creation(self):
        """Test creating PDF generation error."""
        error = PDFGenerationError("Test error message")
        assert str(error) == "Test error message"
        assert isinstance(error, Exception)


class TestLifecycle:
    """Test browser startup and shutdown."""

    def test_not_ready_before_initialize(self, renderer):
        """Test a new renderer is not ready."""
        assert renderer.is_ready is False
        assert renderer.headless is True
        assert renderer.timeout == 5000

    @pytest.mark.asyncio
    async def test_initialize_success(self, renderer):
        """Test Chromium is launched on initialize."""
        mock_browser = AsyncMock()
        mock_playwright = AsyncMock()
        mock_playwright.chromium.launch.return_value = mock_browser

        with patch("webclip.core.rendering.pdf_generator.async_playwright") as mock_async_playwright:
            mock_async_playwright.return_value.start = AsyncMock(return_value=mock_playwright)
            await renderer.initialize()

        assert renderer.is_ready is True
        mock_playwright.chromium.launch.assert_called_once()

    @pytest.mark.asyncio
    async def test_initialize_failure(self, renderer):
        """Test startup failures are wrapped."""
        with patch("webclip.core.rendering.pdf_generator.async_playwright") as mock_async_playwright:
            mock_async_playwright.return_value.start = AsyncMock(
                side_effect=Exception("Playwright failed")
            )
            with pytest.raises(PDFGenerationError, match="Browser initialization failed"):
                await renderer.initialize()

    @pytest.mark.asyncio
    async def test_close(self, renderer):
        """Test closing browser and Playwright."""
        browser = AsyncMock()
        playwright = AsyncMock()
        renderer._browser = browser
        renderer._playwright = playwright

        await renderer.close()

        browser.close.assert_called_once()
        playwright.stop.assert_called_once()
        assert renderer.is_ready is False


class TestOptionMapping:
    """Test parameter to Chromium argument mapping."""

    def test_pdf_args_page_size_and_margins(self, renderer):
        """Test sizes and margins are given in millimetres."""
        options = renderer_options(
            ClipParams(page_size="A4", margin_top=10, margin_left=5, orientation="Landscape")
        )
        args = renderer.pdf_args(options)

        assert args["width"] == "210mm"
        assert args["height"] == "297mm"
        assert args["landscape"] is True
        assert args["margin"] == {"top": "10mm", "left": "5mm"}
        assert args["print_background"] is True

    def test_pdf_args_explicit_dimensions_override_size(self, renderer):
        """Test page width and height override the named size."""
        args = renderer.pdf_args({"page_size": "A4", "page_width": 100, "page_height": 150})
        assert (args["width"], args["height"]) == ("100mm", "150mm")

    def test_pdf_args_custom_size(self, renderer):
        """Test the custom size sets no dimensions of its own."""
        args = renderer.pdf_args({"page_size": "Custom"})
        assert "width" not in args and "height" not in args

    def test_pdf_args_zoom_clamped(self, renderer):
        """Test zoom is clamped to the scale Chromium accepts."""
        assert renderer.pdf_args({"zoom": 5.0})["scale"] == 2.0
        assert renderer.pdf_args({"zoom": 0.01})["scale"] == 0.1
        assert renderer.pdf_args({"zoom": 1.5})["scale"] == 1.5

    def test_pdf_args_unset_fields_use_defaults(self, renderer):
        """Test unset fields produce no arguments."""
        assert renderer.pdf_args({}) == {"print_background": True}

    def test_no_background(self, renderer):
        """Test backgrounds can be turned off."""
        assert renderer.pdf_args({"no_background": True})["print_background"] is False

    def test_context_args_viewport(self, renderer):
        """Test the viewport size is parsed."""
        errors = []
        args = renderer.context_args({"viewport_size": "1280x800"}, errors)
        assert args["viewport"] == {"width": 1280, "height": 800}
        assert args["java_script_enabled"] is False
        assert errors == []

    def test_context_args_bad_viewport(self, renderer):
        """Test a malformed viewport is reported, not fatal."""
        errors = []
        args = renderer.context_args({"viewport_size": "wide", "enable_javascript": True}, errors)
        assert "viewport" not in args
        assert args["java_script_enabled"] is True
        assert errors == ["bad viewport size: wide"]

    def test_extraction_fields_not_passed(self):
        """Test extraction-only fields never reach the renderer."""
        options = renderer_options(ClipParams(query="#main", remove=".ad", title="Doc"))
        assert options == {"title": "Doc", "enable_javascript": False}


class TestRender:
    """Test rendering with a mocked browser."""

    @pytest.mark.asyncio
    async def test_not_initialized(self, renderer):
        """Test rendering without a browser reports an error and no content."""
        result = await renderer.render(RenderSource(url="https://example.com/"), {})
        assert result.content == b""
        assert result.error == "browser not initialized"

    @pytest.mark.asyncio
    async def test_render_url(self, renderer):
        """Test a URL source is navigated and printed."""
        _, context, page = attach_browser(renderer)

        result = await renderer.render(RenderSource(url="https://example.com/"), {})

        assert result.content == b"%PDF-1.4"
        assert result.error is None
        page.goto.assert_called_once_with("https://example.com/", wait_until="load")
        context.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_render_html(self, renderer):
        """Test a markup source is loaded with set_content."""
        _, _, page = attach_browser(renderer)
        source = RenderSource(html="<p>x</p>", base_url="https://example.com/")

        await renderer.render(source, {"title": "Doc"})

        page.set_content.assert_called_once_with("<p>x</p>", wait_until="load")
        page.evaluate.assert_called_once()
        assert page.evaluate.call_args.args[1]["title"] == "Doc"
        assert page.evaluate.call_args.args[1]["host"] == "example.com"

    @pytest.mark.asyncio
    async def test_navigation_error_still_prints(self, renderer):
        """Test a navigation failure is reported alongside the document."""
        _, _, page = attach_browser(renderer)
        page.goto.side_effect = PlaywrightError("net::ERR_TIMED_OUT")

        result = await renderer.render(RenderSource(url="https://example.com/"), {})

        assert result.content == b"%PDF-1.4"
        assert "navigation" in result.error

    @pytest.mark.asyncio
    async def test_pdf_failure_yields_no_content(self, renderer):
        """Test a failed print leaves no content."""
        _, context, page = attach_browser(renderer)
        page.pdf.side_effect = PlaywrightError("Target closed")

        result = await renderer.render(RenderSource(url="https://example.com/"), {})

        assert result.content == b""
        assert result.error.startswith("pdf:")
        context.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_grayscale_and_images(self, renderer):
        """Test page-level options are applied."""
        _, _, page = attach_browser(renderer)

        await renderer.render(
            RenderSource(url="https://example.com/"), {"grayscale": True, "no_images": True}
        )

        page.add_style_tag.assert_called_once()
        page.route.assert_called_once()

    @pytest.mark.asyncio
    async def test_route_blocks_images_only(self, renderer):
        """Test the route handler aborts image requests."""
        image_route = AsyncMock()
        image_route.request.resource_type = "image"
        script_route = AsyncMock()
        script_route.request.resource_type = "script"

        await renderer._handle_route(image_route)
        await renderer._handle_route(script_route)

        image_route.abort.assert_called_once()
        script_route.continue_.assert_called_once()
