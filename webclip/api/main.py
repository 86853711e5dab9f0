"""
FastAPI Application
===================

Main FastAPI application for the clipping service.
Wires settings, presets, the page fetcher and the PDF renderer into a
ClipPipeline and exposes it over HTTP.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from webclip.api.routes.clip import router as clip_router
from webclip.api.routes.health import router as health_router
from webclip.config.logging import get_logger
from webclip.config.settings import Settings, get_settings
from webclip.core.fetcher import PageFetcher
from webclip.core.pipeline import ClipPipeline
from webclip.core.presets import PresetStore, load_presets
from webclip.core.rendering.pdf_generator import PDFGenerationError, PlaywrightPDFRenderer
from webclip.core.rendering.renderer import DocumentRenderer

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(
    settings: Optional[Settings] = None,
    renderer: Optional[DocumentRenderer] = None,
    fetcher: Optional[PageFetcher] = None,
    presets: Optional[PresetStore] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Service settings, the global settings by default
        renderer: Document renderer, Playwright Chromium by default
        fetcher: Page fetcher, built from settings by default
        presets: Preset store, loaded from ``settings.presets_path`` by default

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    renderer = renderer or PlaywrightPDFRenderer(
        headless=settings.playwright_headless, timeout=settings.playwright_timeout
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        # Startup
        logger.info("Starting clip service", version=settings.app_version)

        store = presets if presets is not None else load_presets(settings.presets_path)

        try:
            await renderer.initialize()
            logger.info("Renderer initialized")
        except PDFGenerationError as e:
            logger.error("Renderer initialization failed", error=str(e))
            raise RuntimeError(f"Renderer initialization failed: {e}")

        pipeline = ClipPipeline.from_settings(settings, renderer, presets=store, fetcher=fetcher)
        app.state.clip_pipeline = pipeline
        logger.info(
            "Clip pipeline ready",
            max_workers=settings.max_workers,
            presets=len(store),
        )

        try:
            yield
        finally:
            # Shutdown
            logger.info("Shutting down clip service")

            try:
                await pipeline.close()
                logger.info("Clip pipeline closed")
            except Exception as e:
                logger.error("Error closing clip pipeline", error=str(e))

            try:
                await renderer.close()
                logger.info("Renderer closed")
            except Exception as e:
                logger.error("Error closing renderer", error=str(e))

    app = FastAPI(
        title="webclip",
        description="Clip web pages into PDF documents",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> Response:  # type: ignore
        """Add request ID to all requests and bind it into request logs."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
        try:
            response = await call_next(request)  # type: ignore
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers[REQUEST_ID_HEADER] = request_id

        return response  # type: ignore

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
        """General exception handler for unexpected errors."""
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=getattr(request.state, "request_id", None),
            exc_info=True,
        )
        return PlainTextResponse("Internal Server Error", status_code=500)

    app.include_router(health_router)
    app.include_router(clip_router)

    return app


def run_server(settings: Optional[Settings] = None) -> None:
    """Run the clip service with uvicorn."""
    settings = settings or get_settings()
    log_config: Any = None  # logging is configured by webclip.config.logging

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=log_config,
        access_log=settings.debug,
    )


app = create_app()
