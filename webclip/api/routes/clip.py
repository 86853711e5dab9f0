"""
Clip Routes
===========

The ``/v1/clip`` endpoint: decodes the request, runs the clipping pipeline
and writes the document or a classified error.
"""

import asyncio
import contextlib
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from webclip.api.classifier import STATUS_CLIENT_CLOSED, classify
from webclip.api.decoder import decode_request
from webclip.config.logging import get_logger
from webclip.core.errors import ClipError
from webclip.core.pipeline import ClipPipeline, RenderedDocument

logger = get_logger(__name__)

router = APIRouter(tags=["Clip"])

PDF_CONTENT_TYPE = "application/pdf"
BINARY_CONTENT_TYPE = "application/octet-stream"

# Every method is routed here so the decoder can answer 405 itself.
CLIP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/v1/clip", methods=CLIP_METHODS)
async def clip(request: Request) -> Response:
    """Clip a web page into a PDF document."""
    pipeline: ClipPipeline = request.app.state.clip_pipeline
    interval: float = request.app.state.settings.disconnect_poll_interval

    logger.info("Clip request received", method=request.method)

    cancel = asyncio.Event()
    watcher: Optional["asyncio.Task[None]"] = None
    try:
        decoded = await decode_request(request)
        # Started only after the body has been consumed.
        watcher = asyncio.create_task(watch_disconnect(request, cancel, interval))
        document = await pipeline.run(decoded, cancel)
    except ClipError as e:
        return error_response(e)
    except Exception as e:
        logger.error("Unhandled clip error", error=str(e), exc_info=True)
        return error_response(e)
    finally:
        if watcher is not None:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    return document_response(document, request.headers.get("accept", ""))


async def watch_disconnect(request: Request, cancel: asyncio.Event, interval: float) -> None:
    """Set ``cancel`` once the client has gone away."""
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected")
            cancel.set()
            return
        await asyncio.sleep(interval)


def negotiate_content_type(accept: str) -> str:
    """``application/pdf`` if the client accepts it, a generic binary type otherwise."""
    if PDF_CONTENT_TYPE in accept.lower():
        return PDF_CONTENT_TYPE
    return BINARY_CONTENT_TYPE


def document_response(document: RenderedDocument, accept: str) -> Response:
    """Successful response carrying the rendered bytes."""
    if document.warning is not None:
        classification = classify(document.warning)
        logger.warning(
            "Renderer reported an error",
            error=classification.message,
            ignorable=classification.ignorable,
        )
    logger.info("Clip request completed", size=len(document.content))
    return Response(content=document.content, media_type=negotiate_content_type(accept))


def error_response(exc: BaseException) -> Response:
    """Plain-text response for a failed request."""
    classification = classify(exc)
    logger.warning(
        "Clip request failed",
        status_code=classification.status,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    if classification.status == STATUS_CLIENT_CLOSED:
        return Response(status_code=STATUS_CLIENT_CLOSED)
    return PlainTextResponse(classification.message, status_code=classification.status)
