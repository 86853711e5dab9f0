"""
DOM Rewrite Engine
==================

Narrows a fetched page down to the requested content and rewrites it so it
renders on its own: selection and removal, container preservation, lazy
image materialization, page-break and custom style injection, and URL
absolutization.

Steps always run in the same order because later steps work on the tree
left by earlier ones.
"""

from typing import Any, List, Optional, Union
from urllib.parse import SplitResult, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from webclip.config.logging import get_logger
from webclip.core.errors import ContainerizationError, NoExtractionResult, ValidationFailed
from webclip.models.params import ClipParams

logger = get_logger(__name__)

MAX_CONTAINER_CLIMBS = 1000

URL_ATTRIBUTES = ("href", "src")

BREAK_RULES = (
    ("no_break_before", "page-break-before:avoid!important;break-before:avoid-page!important"),
    ("no_break_inside", "page-break-inside:avoid!important;break-inside:avoid-page!important"),
    ("no_break_after", "page-break-after:avoid!important;break-after:avoid-page!important"),
)


class DOMRewriter:
    """Applies clipping parameters to a parsed HTML document."""

    def __init__(self, parser: str = "lxml"):
        self.parser = parser
        self.logger: Any = logger.bind(component="dom_rewriter")  # structlog.BoundLoggerBase

    def rewrite(self, markup: Union[str, bytes], origin_url: str, params: ClipParams) -> str:
        """
        Rewrite a page according to ``params``.

        Args:
            markup: Page HTML as fetched
            origin_url: URL the page was fetched from
            params: Merged and validated clipping parameters

        Returns:
            Rewritten document serialized as HTML

        Raises:
            NoExtractionResult: If the body is empty after rewriting
            ValidationFailed: If a selector cannot be parsed
            ContainerizationError: If the container climb does not terminate
        """
        soup = BeautifulSoup(markup, self.parser)
        body = _ensure_body(soup)

        if params.query:
            self._subset(soup, body, params.query, bool(params.with_containers))
        if params.remove:
            for node in _select(soup, params.remove):
                if _encloses(node, body):
                    body.clear()
                else:
                    node.extract()
        if params.force_image_loading:
            materialize_images(soup)

        for field, declarations in BREAK_RULES:
            selector = getattr(params, field)
            if selector:
                _append_style(soup, f"{selector}{{{declarations}}}")
        if params.custom_styles:
            _append_style(soup, params.custom_styles)

        absolutize_urls(soup, urlsplit(origin_url))

        if body.find(True, recursive=False) is None:
            raise NoExtractionResult()

        html = str(soup)
        self.logger.debug("Document rewritten", origin=origin_url, html_length=len(html))
        return html

    def _subset(self, soup: BeautifulSoup, body: Tag, query: str, with_containers: bool) -> None:
        selection = _select(soup, query)
        # A match on body or above it keeps the whole body.
        if any(_encloses(node, body) for node in selection):
            return
        selection = _outermost(selection)
        if with_containers:
            selection = containerize(selection, body)
        nodes = [node.extract() for node in selection]
        body.clear()
        for node in nodes:
            body.append(node)


def containerize(selection: List[Tag], root: Tag) -> List[Tag]:
    """
    Keep the ancestor chain from ``root`` down to ``selection``.

    At every level the parent's children are replaced by the selection
    alone, so wrapping elements survive while their other content is dropped.

    Args:
        selection: Selected elements in document order
        root: Element the climb stops at, normally ``body``

    Returns:
        The outermost kept container, a direct child of ``root``

    Raises:
        ContainerizationError: If the climb leaves the document or exceeds
            MAX_CONTAINER_CLIMBS
    """
    rounds = 0
    while selection:
        parents = _parents(selection)
        if parents and parents[0] is root:
            return selection
        rounds += 1
        if rounds > MAX_CONTAINER_CLIMBS:
            raise ContainerizationError("too many container climbs")
        if not parents:
            raise ContainerizationError("selection is not inside the document body")

        parent = parents[0]
        nodes = [node.extract() for node in selection]
        parent.clear()
        for node in nodes:
            parent.append(node)
        selection = [parent]
    return selection


def materialize_images(soup: BeautifulSoup) -> None:
    """Copy ``data-src`` into ``src`` for lazily loaded images."""
    for img in soup.find_all("img"):
        value = img.get("data-src")
        if value:
            img["src"] = value


def absolutize_urls(soup: BeautifulSoup, origin: SplitResult) -> None:
    """Rewrite relative ``href``/``src`` values against ``origin``."""
    for node in soup.select("[href], [src]"):
        for attr in URL_ATTRIBUTES:
            value = node.get(attr)
            if isinstance(value, str):
                node[attr] = absolutize_url(value, origin)


def absolutize_url(value: str, origin: SplitResult) -> str:
    """
    Make one URL absolute.

    Relative paths are appended to the origin path rather than resolved
    segment by segment: ``/docs/a`` + ``b.png`` gives ``/docs/a/b.png``.
    Values that are already absolute or cannot be parsed are returned as is.
    """
    try:
        url = urlsplit(value)
    except ValueError:
        return value
    if url.scheme:
        return value

    scheme, netloc, path, query, fragment = url
    if not netloc:
        netloc = origin.netloc
        scheme = origin.scheme

    if not scheme:
        scheme = origin.scheme
    elif path and not path.startswith("/"):
        path = origin.path + "/" + path
    elif fragment:
        path = origin.path

    return urlunsplit((scheme, netloc, path, query, fragment))


def rewrite_document(markup: Union[str, bytes], origin_url: str, params: ClipParams) -> str:
    """Rewrite ``markup`` with a default DOMRewriter."""
    return DOMRewriter().rewrite(markup, origin_url, params)


def _select(soup: BeautifulSoup, selector: str) -> List[Tag]:
    try:
        return soup.select(selector)
    except SelectorSyntaxError as e:
        raise ValidationFailed(f"invalid css selector: {selector}") from e


def _encloses(node: Tag, body: Tag) -> bool:
    """Whether ``node`` is ``body`` or one of its ancestors."""
    return node is body or any(parent is node for parent in body.parents)


def _outermost(selection: List[Tag]) -> List[Tag]:
    """Drop selected nodes nested inside other selected nodes."""
    selected = {id(node) for node in selection}
    return [
        node
        for node in selection
        if not any(id(parent) in selected for parent in node.parents)
    ]


def _parents(selection: List[Tag]) -> List[Tag]:
    seen = set()
    parents: List[Tag] = []
    for node in selection:
        parent: Optional[Tag] = node.parent
        if parent is None or isinstance(parent, BeautifulSoup) or id(parent) in seen:
            continue
        seen.add(id(parent))
        parents.append(parent)
    return parents


def _ensure_body(soup: BeautifulSoup) -> Tag:
    if soup.body is not None:
        return soup.body
    body = soup.new_tag("body")
    (soup.html or soup).append(body)
    return body


def _ensure_head(soup: BeautifulSoup) -> Tag:
    if soup.head is not None:
        return soup.head
    head = soup.new_tag("head")
    (soup.html or soup).insert(0, head)
    return head


def _append_style(soup: BeautifulSoup, css: str) -> None:
    style = soup.new_tag("style")
    style.string = css
    _ensure_head(soup).append(style)
