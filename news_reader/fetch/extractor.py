"""
Direct article extraction from the publisher's page.

The page is fetched with browser-like headers, noise elements are removed,
and the article body is located by trying an ordered list of container
selectors. When no container yields enough structured content, the
extractor falls back to collecting paragraphs, headings, images and quotes
from the whole page.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, TypeVar

from bs4 import BeautifulSoup, Tag
import httpx

from ..config import ExtractConfig, FetchConfig
from ..core.types import ExtractedArticle
from ..logging_utils import log_event, truncate_text
from .fetcher import fetch_url
from .normalizer import ContentNormalizer, join_blocks, visible_text

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

FLAT_FALLBACK_SELECTOR = "p, h1, h2, h3, img, blockquote"


def first_acceptable(
    candidates: Iterable[T],
    extract: Callable[[T], R],
    accept: Callable[[R], bool],
) -> R | None:
    """Return the first extraction result that passes accept, or None."""
    for candidate in candidates:
        result = extract(candidate)
        if accept(result):
            return result
    return None


def remove_noise(soup: BeautifulSoup, selectors: Iterable[str]) -> None:
    """Detach every element matching one of the noise selectors."""
    for selector in selectors:
        for element in soup.select(selector):
            element.extract()


def iter_containers(soup: BeautifulSoup, selectors: Iterable[str]) -> Iterable[Tag]:
    """Yield candidate article containers in selector priority order."""
    for selector in selectors:
        yield from soup.select(selector)


def extract_from_html(html: str, base_url: str, cfg: ExtractConfig) -> str:
    """Extract normalized article content from a page.

    Args:
        html: Raw page HTML
        base_url: URL the page was served from, for resolving relative links
        cfg: Extraction thresholds and selector lists

    Returns:
        Markdown content truncated to cfg.max_content_chars (may be empty)
    """
    soup = BeautifulSoup(html, "html.parser")
    remove_noise(soup, cfg.noise_selectors)
    normalizer = ContentNormalizer(base_url, cfg.image_attributes)

    containers = (
        element
        for element in iter_containers(soup, cfg.container_selectors)
        if len(visible_text(element)) > cfg.min_container_chars
    )
    content = first_acceptable(
        containers,
        normalizer.normalize,
        lambda text: len(text) >= cfg.min_container_chars,
    )
    if content is None:
        content = _flat_fallback(soup, normalizer, cfg.min_paragraph_chars)
    return truncate_text(content, cfg.max_content_chars)


def _flat_fallback(soup: BeautifulSoup, normalizer: ContentNormalizer, min_paragraph_chars: int) -> str:
    blocks: list[str] = []
    for element in soup.select(FLAT_FALLBACK_SELECTOR):
        # Quotes are rendered whole; skip their inner paragraphs.
        if element.name == "p" and element.find_parent("blockquote") is not None:
            continue
        if element.name == "p" and len(visible_text(element)) <= min_paragraph_chars:
            continue
        blocks.extend(normalizer.render_element(element))
    return join_blocks(blocks)


class DirectFetcher:
    """Fetches an article page and extracts its body.

    Never raises: network and parse failures become a failed result.
    """

    name = "direct"

    def __init__(
        self,
        fetch_cfg: FetchConfig,
        extract_cfg: ExtractConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.fetch_cfg = fetch_cfg
        self.extract_cfg = extract_cfg
        self.transport = transport

    async def extract(self, url: str) -> ExtractedArticle:
        headers = {"User-Agent": self.fetch_cfg.user_agent, "Accept": self.fetch_cfg.accept}
        result = await fetch_url(
            url,
            timeout=self.fetch_cfg.timeout_seconds,
            headers=headers,
            trust_env=self.fetch_cfg.trust_env,
            transport=self.transport,
        )
        if not result.ok or result.text is None:
            return self._failed(url, result.error or "empty response")

        try:
            content = extract_from_html(result.text, result.final_url or url, self.extract_cfg)
        except Exception as exc:  # noqa: BLE001
            return self._failed(url, f"{type(exc).__name__}: {exc}")

        return ExtractedArticle(
            content=content,
            format="markdown",
            source=self.name,
            success=True,
            original_url=url,
        )

    def _failed(self, url: str, error: str) -> ExtractedArticle:
        log_event(
            logger,
            f"Direct fetch failed for {url}: {error}",
            level=logging.WARNING,
            event="direct_fetch_failed",
            url=url,
            error=error,
        )
        return ExtractedArticle(
            content="",
            format="markdown",
            source=self.name,
            success=False,
            original_url=url,
            error=error,
        )
