"""
Conversion of an article DOM subtree into lightweight markdown.

The output uses heading markers, blank-line separated paragraphs,
``![alt](url)`` image references, ``>`` quotes and ``-`` list items.
The transformation is best-effort: malformed markup or missing
attributes only ever cause the affected element to be skipped.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag


DEFAULT_IMAGE_ATTRIBUTES = ("src", "data-src", "data-lazy-src")
SKIP_TAGS = frozenset({"script", "style", "noscript", "nav", "aside", "footer"})
CONTAINER_TAGS = frozenset({"div", "section", "article", "main"})
HEADING_MARKERS = {"h1": "#", "h2": "##", "h3": "###"}

_WHITESPACE_RE = re.compile(r"\s+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{4,}")


def visible_text(node: Tag | BeautifulSoup) -> str:
    """Return the node's text with whitespace collapsed to single spaces."""
    return _WHITESPACE_RE.sub(" ", node.get_text(" ")).strip()


def resolve_image_url(
    img: Tag,
    base_url: str,
    attributes: Sequence[str] = DEFAULT_IMAGE_ATTRIBUTES,
) -> str | None:
    """Return the absolute URL of the first usable image source attribute.

    Inline ``data:`` placeholders, common on lazy-loaded images, are not
    usable and fall through to the next attribute.
    """
    for attr in attributes:
        value = img.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if not value or not value.strip():
            continue
        value = value.strip()
        if value.startswith("data:"):
            continue
        return urljoin(base_url, value)
    return None


class ContentNormalizer:
    """Walks a DOM subtree and renders it as markdown blocks.

    Element handlers are looked up by tag name; tags without a handler
    are ignored. Extend ``handlers`` to support more tags.
    """

    def __init__(self, base_url: str, image_attributes: Sequence[str] = DEFAULT_IMAGE_ATTRIBUTES):
        self.base_url = base_url
        self.image_attributes = tuple(image_attributes)
        self.handlers: dict[str, Callable[[Tag], list[str]]] = {
            "p": self._paragraph,
            "h1": self._heading,
            "h2": self._heading,
            "h3": self._heading,
            "img": self._image,
            "figure": self._figure,
            "blockquote": self._blockquote,
            "ul": self._list,
            "ol": self._list,
        }
        for tag in CONTAINER_TAGS:
            self.handlers[tag] = self._container

    def normalize(self, root: Tag | BeautifulSoup) -> str:
        """Render the children of root as a markdown string."""
        return join_blocks(self._children(root))

    def render_element(self, element: Tag) -> list[str]:
        """Render a single element, returning its markdown blocks."""
        if element.name in SKIP_TAGS:
            return []
        handler = self.handlers.get(element.name or "")
        if handler is None:
            return []
        return handler(element)

    def _children(self, node: Tag | BeautifulSoup) -> list[str]:
        blocks: list[str] = []
        for child in node.children:
            if isinstance(child, NavigableString) or not isinstance(child, Tag):
                continue
            blocks.extend(self.render_element(child))
        return blocks

    def _container(self, element: Tag) -> list[str]:
        return self._children(element)

    def _paragraph(self, element: Tag) -> list[str]:
        text = visible_text(element)
        return [text] if text else []

    def _heading(self, element: Tag) -> list[str]:
        text = visible_text(element)
        if not text:
            return []
        return [f"{HEADING_MARKERS[element.name]} {text}"]

    def _image(self, element: Tag) -> list[str]:
        url = resolve_image_url(element, self.base_url, self.image_attributes)
        if not url:
            return []
        alt = element.get("alt") or ""
        if isinstance(alt, list):
            alt = " ".join(alt)
        alt = _WHITESPACE_RE.sub(" ", alt).strip()
        return [f"![{alt}]({url})"]

    def _figure(self, element: Tag) -> list[str]:
        img = element.find("img")
        if not isinstance(img, Tag):
            return []
        return self._image(img)

    def _blockquote(self, element: Tag) -> list[str]:
        text = visible_text(element)
        return [f"> {text}"] if text else []

    def _list(self, element: Tag) -> list[str]:
        items = [visible_text(li) for li in element.find_all("li")]
        lines = [f"- {item}" for item in items if item]
        return ["\n".join(lines)] if lines else []


def join_blocks(blocks: Iterable[str]) -> str:
    """Join markdown blocks with blank lines and cap runs of newlines at three."""
    text = "\n\n".join(block for block in blocks if block)
    return _EXCESS_NEWLINES_RE.sub("\n\n\n", text).strip()


def normalize_content(root: Tag | BeautifulSoup, base_url: str, image_attributes: Sequence[str] = DEFAULT_IMAGE_ATTRIBUTES) -> str:
    """Convenience wrapper around ContentNormalizer.normalize."""
    return ContentNormalizer(base_url, image_attributes).normalize(root)
