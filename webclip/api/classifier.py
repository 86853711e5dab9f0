"""
Error Classifier
================

Maps pipeline errors to a status code and a plain-text message.

Clip-specific failures use a block of application status codes starting at
701 so clients can tell them apart from transport-level HTTP errors.
"""

from dataclasses import dataclass
from http import HTTPStatus

from webclip.core.errors import (
    DecodeFailed,
    DisallowedScheme,
    EmptyBody,
    FieldDecodeError,
    MalformedURL,
    MethodNotAllowed,
    MissingURL,
    NoExtractionResult,
    PresetNotFound,
    RendererIgnorable,
    RequestCancelled,
    UpstreamFetchFailed,
    ValidationFailed,
)

STATUS_BAD_RESPONSE = 701
STATUS_NO_RESULT = 702
STATUS_BAD_URL_SCHEME = 703
STATUS_BAD_URL = 704
STATUS_VALIDATION_FAILED = 705
STATUS_NO_PRESET = 706

# nginx convention for a client that closed the connection
STATUS_CLIENT_CLOSED = 499


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying an error."""

    status: int
    message: str
    ignorable: bool = False


def classify(exc: BaseException) -> Classification:
    """
    Classify an error raised while handling a clip request.

    A RendererIgnorable is flagged ``ignorable``: the document was produced
    and is sent as a normal response, the error is only logged.
    Unknown errors map to a generic 500 without details.
    """
    if isinstance(exc, RendererIgnorable):
        return Classification(HTTPStatus.OK, str(exc), ignorable=True)
    if isinstance(exc, UpstreamFetchFailed):
        return Classification(
            STATUS_BAD_RESPONSE, "server returned non 2xx status for requested url"
        )
    if isinstance(exc, MissingURL):
        return Classification(HTTPStatus.BAD_REQUEST, "url is required")
    if isinstance(exc, DisallowedScheme):
        return Classification(
            STATUS_BAD_URL_SCHEME, "bad URL scheme: only http and https are supported"
        )
    if isinstance(exc, NoExtractionResult):
        return Classification(STATUS_NO_RESULT, "no result elements for given selectors")
    if isinstance(exc, EmptyBody):
        return Classification(HTTPStatus.BAD_REQUEST, "request body is empty")
    if isinstance(exc, DecodeFailed):
        return Classification(HTTPStatus.BAD_REQUEST, "bad json value")
    if isinstance(exc, MethodNotAllowed):
        return Classification(
            HTTPStatus.METHOD_NOT_ALLOWED, HTTPStatus.METHOD_NOT_ALLOWED.phrase
        )
    if isinstance(exc, PresetNotFound):
        return Classification(STATUS_NO_PRESET, f"preset not found: {exc.name}")
    if isinstance(exc, FieldDecodeError):
        return Classification(
            STATUS_VALIDATION_FAILED,
            f"validation error: param {exc.field} requires value of {exc.expected}",
        )
    if isinstance(exc, ValidationFailed):
        return Classification(STATUS_VALIDATION_FAILED, exc.message)
    if isinstance(exc, MalformedURL):
        return Classification(STATUS_BAD_URL, "malformed url")
    if isinstance(exc, RequestCancelled):
        return Classification(STATUS_CLIENT_CLOSED, "")
    return Classification(
        HTTPStatus.INTERNAL_SERVER_ERROR, HTTPStatus.INTERNAL_SERVER_ERROR.phrase
    )
