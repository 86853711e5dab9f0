"""
Clipping Errors
===============

Exceptions raised by the clipping pipeline and request decoder.
Every exception is classified once, at the API boundary, into a status
code and message by ``webclip.api.classifier``.
"""

from typing import Optional


class ClipError(Exception):
    """Base class for all clipping errors."""

    pass


class UpstreamFetchFailed(ClipError):
    """The source page answered with a non-success status."""

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"bad status: {status}")


class PageFetchError(ClipError):
    """The source page could not be downloaded at all."""

    pass


class NoExtractionResult(ClipError):
    """The selectors left the document body empty."""

    def __init__(self) -> None:
        super().__init__("no result")


class MissingURL(ClipError):
    """No target URL was supplied."""

    def __init__(self) -> None:
        super().__init__("url is required")


class DisallowedScheme(ClipError):
    """The target URL is neither http nor https."""

    def __init__(self, scheme: str):
        self.scheme = scheme
        super().__init__(f"bad URL scheme: {scheme}")


class MalformedURL(ClipError):
    """The target URL could not be parsed."""

    pass


class ValidationFailed(ClipError):
    """A parameter value is outside its allowed set."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"validation error: {message}")


class FieldDecodeError(ValidationFailed):
    """A form field could not be converted to its declared kind."""

    def __init__(self, field: str, expected: str, detail: Optional[str] = None):
        self.field = field
        self.expected = expected
        self.detail = detail
        super().__init__(f"param {field} requires value of {expected}")


class PresetNotFound(ClipError):
    """A named preset was requested but is not defined."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"preset not found: {name}")


class MethodNotAllowed(ClipError):
    """The request method/content type combination is not supported."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"method not allowed: {method}")


class EmptyBody(ClipError):
    """A JSON request arrived without a body."""

    def __init__(self) -> None:
        super().__init__("request body is empty")


class DecodeFailed(ClipError):
    """The JSON request body could not be decoded."""

    pass


class RendererFatal(ClipError):
    """The renderer failed and produced no document."""

    pass


class RendererIgnorable(ClipError):
    """The renderer reported a failure but still produced a document.

    Only logged; the produced document is sent to the client.
    """

    pass


class RequestCancelled(ClipError):
    """The client went away before a renderer slot was acquired."""

    def __init__(self) -> None:
        super().__init__("request cancelled")


class ContainerizationError(ClipError):
    """Climbing from a selection to the document body did not terminate."""

    pass


class PresetLoadError(Exception):
    """Preset definitions exist but cannot be parsed."""

    pass
