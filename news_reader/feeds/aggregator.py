"""
Concurrent RSS aggregation.

Every registered source is fetched and parsed concurrently. A source that
fails (unreachable, timed out, malformed) contributes one FeedError and no
articles; it never affects its siblings. The successful items are merged,
sorted newest first and returned together with the derived views of the
new cache generation.
"""

from __future__ import annotations

import asyncio
from calendar import timegm
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Callable, Iterable

from bs4 import BeautifulSoup
import feedparser
import httpx

from ..config import CacheConfig, FeedConfig
from ..core.errors import FeedValidationError
from ..core.ids import article_id
from ..core.types import AggregationResult, Article, FeedError, FeedSource
from ..fetch.fetcher import fetch_url
from ..fetch.normalizer import visible_text
from ..logging_utils import log_event
from ..topics import build_topic_cloud
from .thumbnails import resolve_thumbnail

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SourceResult:
    """Outcome of fetching one source: articles on success, error otherwise."""
    source: FeedSource
    articles: list[Article] = field(default_factory=list)
    error: str | None = None


@dataclass
class ParsedFeed:
    title: str
    entries: list[Any]


def parse_feed_document(text: str, url: str) -> ParsedFeed:
    """Parse an RSS/Atom document.

    Raises:
        FeedValidationError: If the document is not a usable feed
    """
    parsed = feedparser.parse(text)
    if parsed.bozo and not parsed.entries:
        raise FeedValidationError(url, str(parsed.get("bozo_exception") or "malformed feed"))
    if not parsed.get("version") and not parsed.entries:
        raise FeedValidationError(url, "no RSS/Atom content found")
    return ParsedFeed(title=parsed.feed.get("title", ""), entries=list(parsed.entries))


def strip_html(text: str | None) -> str:
    if not text:
        return ""
    if "<" not in text:
        return " ".join(text.split())
    return visible_text(BeautifulSoup(text, "html.parser"))


def _published_at(entry: Any, fallback: datetime) -> datetime:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime.fromtimestamp(timegm(parsed), tz=timezone.utc)
            except (ValueError, OverflowError, TypeError):
                continue
    return fallback


def entry_to_article(entry: Any, source: FeedSource, fetched_at: datetime, snippet_chars: int = 300) -> Article:
    """Convert a feedparser entry to an Article."""
    link = entry.get("link") or ""
    content_list = entry.get("content") or []
    full_content = None
    if content_list:
        full_content = content_list[0].get("value") or None
    summary = entry.get("summary") or ""
    if full_content is None and summary:
        full_content = summary

    snippet = strip_html(summary) or strip_html(full_content)
    return Article(
        id=article_id(link, entry.get("id")),
        title=strip_html(entry.get("title")) or "",
        link=link,
        source=source.name,
        source_key=source.key,
        category=source.category,
        icon=source.icon,
        author=entry.get("author") or source.name,
        published_at=_published_at(entry, fetched_at),
        content_snippet=snippet[:snippet_chars],
        full_content=full_content,
        image=resolve_thumbnail(entry),
    )


def group_by_category(articles: Iterable[Article]) -> dict[str, list[Article]]:
    groups: dict[str, list[Article]] = defaultdict(list)
    for article in articles:
        groups[article.category].append(article)
    return dict(groups)


def merge_articles(results: Iterable[SourceResult]) -> list[Article]:
    """Merge source results, newest first.

    Articles sharing an id are the same article: the later one overwrites
    the earlier one in place. Ties in publication time keep merge order.
    """
    by_id: dict[str, Article] = {}
    for result in results:
        for article in result.articles:
            by_id[article.id] = article
    return sorted(by_id.values(), key=lambda a: a.published_at, reverse=True)


class FeedAggregator:
    """Fetches all sources concurrently and builds a cache generation."""

    def __init__(
        self,
        cfg: FeedConfig,
        cache_cfg: CacheConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utcnow,
    ):
        self.cfg = cfg
        self.cache_cfg = cache_cfg or CacheConfig()
        self.transport = transport
        self.clock = clock

    async def fetch_document(self, url: str) -> ParsedFeed:
        """Fetch and parse one feed document.

        Raises:
            FeedValidationError: If the feed cannot be fetched or parsed
        """
        result = await fetch_url(
            url,
            timeout=self.cfg.timeout_seconds,
            headers={"User-Agent": self.cfg.user_agent},
            transport=self.transport,
        )
        if not result.ok or result.text is None:
            raise FeedValidationError(url, result.error or "empty response")
        return parse_feed_document(result.text, url)

    async def fetch_source(self, source: FeedSource, fetched_at: datetime) -> SourceResult:
        """Fetch one source; failures are captured, never raised."""
        try:
            parsed = await asyncio.wait_for(
                self.fetch_document(source.url), timeout=self.cfg.timeout_seconds
            )
            articles = [
                entry_to_article(entry, source, fetched_at, self.cfg.snippet_chars)
                for entry in parsed.entries
            ]
        except asyncio.TimeoutError:
            return self._failed(source, f"Timed out after {self.cfg.timeout_seconds}s")
        except FeedValidationError as exc:
            return self._failed(source, exc.reason)
        except Exception as exc:  # noqa: BLE001
            return self._failed(source, f"{type(exc).__name__}: {exc}")

        log_event(
            logger,
            f"✓ {source.name}: {len(articles)} articles",
            event="feed_ok",
            source_key=source.key,
            count=len(articles),
        )
        return SourceResult(source=source, articles=articles)

    async def aggregate(self, sources: Iterable[FeedSource]) -> AggregationResult:
        """Run one full aggregation cycle over sources."""
        sources = list(sources)
        fetched_at = self.clock()
        log_event(logger, f"Fetching {len(sources)} RSS feeds", event="aggregation_start", count=len(sources))

        results = await asyncio.gather(*(self.fetch_source(s, fetched_at) for s in sources))

        articles = merge_articles(r for r in results if r.error is None)
        errors = [
            FeedError(source_key=r.source.key, source=r.source.name, error=r.error)
            for r in results
            if r.error is not None
        ]
        completed_at = self.clock()

        log_event(
            logger,
            f"Fetched {len(articles)} total articles ({len(errors)} feeds failed)",
            event="aggregation_complete",
            count=len(articles),
            failed=len(errors),
        )
        return AggregationResult(
            articles=articles,
            fetched_at=completed_at,
            categories=group_by_category(articles),
            topics=build_topic_cloud(
                articles,
                hidden_categories=self.cfg.hidden_categories,
                hidden_sources={s.key for s in sources if s.hidden},
                limit=self.cache_cfg.topic_limit,
            ),
            errors=errors,
        )

    def _failed(self, source: FeedSource, error: str) -> SourceResult:
        log_event(
            logger,
            f"✗ {source.name}: {error}",
            level=logging.WARNING,
            event="feed_failed",
            source_key=source.key,
            error=error,
        )
        return SourceResult(source=source, error=error)
