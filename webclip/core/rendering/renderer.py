"""
Renderer Interface
==================

Contract between the clipping pipeline and a document renderer.

A renderer receives a page (URL or inline markup) and a flat set of named
options, and returns the produced bytes together with an error message. The
error is not fully trustworthy: a renderer may report a failure and still
produce a usable document, so callers look at both.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from webclip.models.params import ClipParams

# Parameters consumed by the DOM rewrite, never passed to the renderer.
EXTRACTION_FIELDS = frozenset(
    {
        "query",
        "remove",
        "no_break_before",
        "no_break_inside",
        "no_break_after",
        "custom_styles",
        "with_containers",
        "force_image_loading",
    }
)


@dataclass
class RenderSource:
    """Page handed to the renderer: a URL to load, or markup to render."""

    url: Optional[str] = None
    html: Optional[str] = None
    base_url: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.url is None) == (self.html is None):
            raise ValueError("RenderSource needs exactly one of url or html")

    @property
    def origin(self) -> str:
        """URL the page belongs to."""
        return self.url or self.base_url or ""


@dataclass
class RenderResult:
    """Renderer output: document bytes and the reported error, if any."""

    content: bytes
    error: Optional[str] = None


class DocumentRenderer(ABC):
    """Abstract base class for document renderers."""

    async def initialize(self) -> None:
        """Acquire renderer resources."""
        pass

    async def close(self) -> None:
        """Release renderer resources."""
        pass

    @property
    def is_ready(self) -> bool:
        return True

    @abstractmethod
    async def render(self, source: RenderSource, options: Dict[str, Any]) -> RenderResult:
        """Render ``source`` with ``options``."""
        pass


def renderer_options(params: ClipParams) -> Dict[str, Any]:
    """
    Build renderer options from the set parameter fields.

    Extraction-only fields are left out. ``enable_javascript`` is always
    present: scripts stay disabled unless explicitly enabled.
    """
    options = {
        name: value
        for name, value in params.set_fields().items()
        if name not in EXTRACTION_FIELDS
    }
    options["enable_javascript"] = bool(params.enable_javascript)
    return options
