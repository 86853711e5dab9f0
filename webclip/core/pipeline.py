"""
Clipping Pipeline
=================

Request-to-render orchestration.

Within one request the steps run strictly in this order: resolve presets,
validate, check the URL, fetch and rewrite the page (skipped when no DOM
work is requested), acquire a gateway slot, render, release the slot.
"""

import asyncio
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Set
from urllib.parse import SplitResult, urlsplit

from webclip.config.logging import get_logger
from webclip.config.settings import Settings
from webclip.core.errors import (
    DisallowedScheme,
    MalformedURL,
    MissingURL,
    PresetNotFound,
    RendererFatal,
    RendererIgnorable,
)
from webclip.core.fetcher import PageFetcher
from webclip.core.gateway import AdmissionGateway
from webclip.core.presets import NullPresetStore, PresetStore
from webclip.core.rendering.renderer import DocumentRenderer, RenderSource, renderer_options
from webclip.core.rewrite import DOMRewriter
from webclip.models.params import ClipParams
from webclip.models.schemas import DecodedRequest

logger = get_logger(__name__)

AUTO_PRESET = "auto"
ALLOWED_SCHEMES = ("http", "https")


@dataclass
class RenderedDocument:
    """Rendered bytes plus the renderer error that was tolerated, if any."""

    content: bytes
    warning: Optional[RendererIgnorable] = None


class ClipPipeline:
    """Turns a decoded request into a rendered document."""

    def __init__(
        self,
        renderer: DocumentRenderer,
        gateway: AdmissionGateway,
        fetcher: Optional[PageFetcher] = None,
        presets: Optional[PresetStore] = None,
        rewriter: Optional[DOMRewriter] = None,
        print_renderer_args: bool = False,
        diagnostic_dump_dir: Optional[Path] = None,
    ):
        self.renderer = renderer
        self.gateway = gateway
        self.fetcher = fetcher or PageFetcher()
        self.presets = presets if presets is not None else NullPresetStore()
        self.rewriter = rewriter or DOMRewriter()
        self.print_renderer_args = print_renderer_args
        self.diagnostic_dump_dir = diagnostic_dump_dir
        self.logger: Any = logger.bind(component="clip_pipeline")  # structlog.BoundLoggerBase
        self._dump_tasks: Set["asyncio.Task[None]"] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        renderer: DocumentRenderer,
        presets: Optional[PresetStore] = None,
        fetcher: Optional[PageFetcher] = None,
    ) -> "ClipPipeline":
        """Build a pipeline whose gateway and diagnostics follow ``settings``."""
        return cls(
            renderer=renderer,
            gateway=AdmissionGateway(settings.max_workers),
            fetcher=fetcher or PageFetcher(settings.fetch_timeout, settings.user_agent),
            presets=presets,
            print_renderer_args=settings.print_renderer_args,
            diagnostic_dump_dir=settings.diagnostic_dump_dir,
        )

    async def close(self) -> None:
        """Wait for pending dumps and close the fetcher session."""
        await self.wait_for_dumps()
        await self.fetcher.close()

    def resolve_presets(self, request: DecodedRequest) -> ClipParams:
        """
        Merge referenced presets into the request parameters.

        Explicit request fields always win; each preset only fills fields
        still unset, in the order the presets are listed.

        Args:
            request: Decoded request

        Returns:
            The request's parameter model, extended in place

        Raises:
            PresetNotFound: If a named preset is not defined
        """
        params = request.params
        for ref in request.presets:
            preset: Optional[ClipParams] = None
            if ref == AUTO_PRESET:
                preset = self.presets.for_site(request.url)
            elif ref:
                preset = self.presets.by_name(ref)
                if preset is None:
                    raise PresetNotFound(ref)
            if preset is not None:
                params.add_from(preset)
        return params

    async def run(
        self, request: DecodedRequest, cancel: Optional[asyncio.Event] = None
    ) -> RenderedDocument:
        """
        Clip the requested page.

        Args:
            request: Decoded request
            cancel: Event set when the client goes away

        Returns:
            RenderedDocument with the produced bytes

        Raises:
            ClipError: Any pipeline failure, classified by the caller
        """
        params = self.resolve_presets(request)
        params.validate_values()
        target = check_url(request.url)

        self.logger.info(
            "Clip requested",
            url=request.url,
            presets=request.presets,
            params=params.describe(),
        )

        if params.skips_extraction():
            source = RenderSource(url=request.url)
        else:
            page = await self.fetcher.fetch(request.url)
            html = self.rewriter.rewrite(page.content, request.url, params)
            self._schedule_dump(target, html)
            source = RenderSource(html=html, base_url=request.url)

        options = renderer_options(params)
        if self.print_renderer_args:
            self.logger.info("Renderer args", source=source.origin, options=options)

        async with self.gateway.slot(cancel):
            result = await self.renderer.render(source, options)

        if not result.content:
            message = "no PDF was generated"
            if result.error:
                message = f"{message}: {result.error}"
            raise RendererFatal(message)

        warning = RendererIgnorable(result.error) if result.error else None
        return RenderedDocument(content=result.content, warning=warning)

    def _schedule_dump(self, url: SplitResult, html: str) -> None:
        if self.diagnostic_dump_dir is None:
            return
        path = dump_path(self.diagnostic_dump_dir, url)
        task = asyncio.create_task(asyncio.to_thread(write_dump, path, html))
        self._dump_tasks.add(task)
        task.add_done_callback(self._dump_done)

    def _dump_done(self, task: "asyncio.Task[None]") -> None:
        self._dump_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error("Diagnostic dump failed", error=str(error))

    async def wait_for_dumps(self) -> None:
        """Wait until every scheduled diagnostic dump has finished."""
        if self._dump_tasks:
            await asyncio.gather(*list(self._dump_tasks), return_exceptions=True)


def check_url(url: str) -> SplitResult:
    """
    Parse the target URL and allow only http(s).

    Raises:
        MissingURL: If ``url`` is empty
        MalformedURL: If ``url`` cannot be parsed
        DisallowedScheme: If the scheme is not http or https
    """
    if not url:
        raise MissingURL()
    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise MalformedURL(str(e)) from e
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise DisallowedScheme(parsed.scheme)
    return parsed


def dump_path(directory: Path, url: SplitResult) -> Path:
    """
    File for the pre-render markup of ``url``.

    ``<directory>/<host>/<last path segment>``, with ``.html`` appended unless
    already present and ``index.html`` for an empty segment.
    """
    name = posixpath.basename(url.path)
    if not name:
        name = "index.html"
    elif posixpath.splitext(name)[1].lower() != ".html":
        name += ".html"
    return directory / url.netloc / name


def write_dump(path: Path, html: str) -> None:
    """Write ``html`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
