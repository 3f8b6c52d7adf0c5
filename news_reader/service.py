"""
The news reader service.

NewsService is the single context object of a running reader: it owns the
feed registry, the cache controller, the preference store and the
extraction pipeline, and implements every query the HTTP and CLI surfaces
expose. Independent instances share no state.
"""

from __future__ import annotations

from datetime import datetime
import logging
from pathlib import Path
from typing import Any, Iterable

import httpx

from .cache import CacheController
from .config import AppConfig
from .core.errors import InvalidRequestError
from .core.ids import slugify
from .core.types import (
    AggregationResult,
    Article,
    ArticlePage,
    CategorySummary,
    Digest,
    DigestSection,
    ExtractedArticle,
    FeedSource,
    PreferenceStats,
    RefreshReport,
    UserPreferences,
)
from .feeds.aggregator import Clock, FeedAggregator, utcnow
from .feeds.registry import FeedRegistry
from .fetch.archive import ArchiveFallback, ArchiveLink
from .fetch.bypass import BypassOrchestrator
from .fetch.extractor import DirectFetcher
from .logging_utils import log_event
from .preferences import PreferenceStore
from .topics import extract_topics, is_suppressed

logger = logging.getLogger(__name__)


def _require_url(url: str | None) -> str:
    if not url or not url.strip():
        raise InvalidRequestError("URL required")
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        raise InvalidRequestError("URL must start with http:// or https://")
    return url


class NewsService:
    """Owns all reader state and implements the inbound query operations."""

    def __init__(
        self,
        cfg: AppConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utcnow,
        preferences_path: Path | None = None,
    ):
        self.cfg = cfg
        self.clock = clock
        self.registry = FeedRegistry.from_config(cfg.feeds.sources)
        self.preferences = PreferenceStore(cfg.preferences, preferences_path)
        for feed in self.preferences.preferences.custom_feeds:
            if feed.key in self.registry or self.registry.find_by_url(feed.url):
                continue
            self.registry.add(feed)

        self.aggregator = FeedAggregator(
            cfg.feeds, cfg.cache, transport=transport, clock=clock
        )
        self.cache = CacheController(cfg.cache, self._aggregate, clock)
        self.direct = DirectFetcher(cfg.fetch, cfg.extract, transport=transport)
        self.archive = ArchiveFallback(cfg.archive, cfg.fetch, transport=transport)
        self.bypass = BypassOrchestrator(
            [(self.direct.name, self.direct.extract), (self.archive.name, self.archive.extract)],
            sufficient_chars=cfg.extract.sufficient_chars,
        )

    async def _aggregate(self) -> AggregationResult:
        return await self.aggregator.aggregate(self.registry.sources())

    # Articles

    async def list_articles(
        self,
        category: str | None = None,
        source: str | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        apply_preferences: bool = False,
    ) -> ArticlePage:
        """Filter and paginate a snapshot of the cache.

        Without a category, articles from hidden sources are left out.
        With apply_preferences, hideReadMode drops read articles and
        realityMode drops articles mentioning a not-interested topic.
        """
        snapshot = await self.cache.get()
        articles = list(snapshot.articles)

        if category:
            articles = [a for a in articles if a.category == category]
        else:
            hidden = self.registry.hidden_keys()
            articles = [a for a in articles if a.source_key not in hidden]
        if source:
            articles = [a for a in articles if a.source_key == source]
        if search:
            needle = search.lower()
            articles = [
                a
                for a in articles
                if needle in a.title.lower() or needle in (a.content_snippet or "").lower()
            ]
        if apply_preferences:
            articles = self._apply_preferences(articles, self.preferences.preferences)

        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else self.cfg.cache.default_page_size
        start = (page - 1) * limit
        return ArticlePage(
            articles=articles[start:start + limit],
            total=len(articles),
            page=page,
            limit=limit,
            last_fetch=self.cache.last_fetch,
        )

    @staticmethod
    def _apply_preferences(articles: list[Article], prefs: UserPreferences) -> list[Article]:
        if prefs.hide_read_mode and prefs.read_articles:
            read = set(prefs.read_articles)
            articles = [a for a in articles if a.id not in read]
        if prefs.reality_mode and prefs.not_interested_topics:
            blocked = set(prefs.not_interested_topics)
            articles = [
                a
                for a in articles
                if blocked.isdisjoint(extract_topics(f"{a.title} {a.content_snippet}"))
            ]
        return articles

    async def list_categories(self) -> tuple[dict[str, CategorySummary], datetime | None]:
        snapshot = await self.cache.get()
        preview = self.cfg.cache.category_preview
        summary = {
            name: CategorySummary(count=len(items), latest=items[:preview])
            for name, items in snapshot.categories.items()
        }
        return summary, self.cache.last_fetch

    async def trending_topics(self) -> tuple[list[tuple[str, int]], datetime | None]:
        snapshot = await self.cache.get()
        return snapshot.topics, self.cache.last_fetch

    async def digest(self) -> tuple[Digest, datetime | None]:
        """Per-category top stories, leaving out hidden categories and hidden sources."""
        snapshot = await self.cache.get()
        hidden_categories = set(self.cfg.feeds.hidden_categories)
        hidden_sources = self.registry.hidden_keys()
        top = self.cfg.cache.digest_top_stories
        sections: dict[str, DigestSection] = {}
        for name, items in snapshot.categories.items():
            shown = [a for a in items if not is_suppressed(a, hidden_categories, hidden_sources)]
            if shown:
                sections[name] = DigestSection(count=len(shown), top_stories=shown[:top])
        total = sum(section.count for section in sections.values())
        return Digest(generated=self.clock(), total_articles=total, categories=sections), self.cache.last_fetch

    async def refresh(self) -> RefreshReport:
        result = await self.cache.refresh()
        return RefreshReport(
            article_count=len(result.articles),
            categories=list(result.categories),
            errors=result.errors,
            last_fetch=self.cache.last_fetch or result.fetched_at,
        )

    # Content extraction

    async def read_article(self, url: str | None) -> ExtractedArticle:
        return await self.bypass.extract(_require_url(url))

    async def archive_link(self, url: str | None) -> ArchiveLink:
        return await self.archive.lookup(_require_url(url))

    # Feed sources

    def list_sources(self) -> list[FeedSource]:
        return self.registry.sources()

    async def add_source(self, data: dict[str, Any]) -> tuple[FeedSource, RefreshReport]:
        """Validate and register a user feed, then refresh the cache.

        Raises:
            InvalidRequestError: On missing fields or a duplicate feed
            FeedValidationError: If the feed cannot be fetched or parsed
        """
        url = _require_url(data.get("url"))
        existing = self.registry.find_by_url(url)
        if existing is not None:
            raise InvalidRequestError(f"Feed URL is already registered as '{existing.key}'")

        parsed = await self.aggregator.fetch_document(url)
        name = (data.get("name") or parsed.title or url).strip()
        key = self._free_key(slugify(data.get("key") or name))
        source = FeedSource(
            key=key,
            url=url,
            name=name,
            category=(data.get("category") or "Custom").strip(),
            icon=data.get("icon") or "📰",
            hidden=bool(data.get("hidden", False)),
            custom=True,
        )
        self.registry.add(source)
        self.preferences.set_custom_feeds(self.registry.custom_sources())
        log_event(logger, f"Added feed {source.name}", event="feed_added", source_key=key, url=url)
        report = await self.refresh()
        return source, report

    async def remove_source(self, key: str) -> tuple[FeedSource, RefreshReport]:
        """Unregister a user-added feed and rebuild the cache without it."""
        source = self.registry.remove(key)
        self.preferences.set_custom_feeds(self.registry.custom_sources())
        log_event(logger, f"Removed feed {source.name}", event="feed_removed", source_key=key)
        report = await self.refresh()
        return source, report

    def _free_key(self, base: str) -> str:
        """Return base, or base with the lowest numeric suffix not yet registered."""
        key = base
        suffix = 2
        while key in self.registry:
            key = f"{base}-{suffix}"
            suffix += 1
        return key

    # Preferences

    def get_preferences(self) -> UserPreferences:
        return self.preferences.preferences

    def update_preferences(self, changes: dict[str, Any]) -> UserPreferences:
        return self.preferences.update(changes)

    def clear_preferences(self) -> UserPreferences:
        return self.preferences.clear()

    def mark_read(self, article_id: str | None, topics: Iterable[str] | None = None) -> UserPreferences:
        if not article_id:
            raise InvalidRequestError("articleId required")
        return self.preferences.mark_read(article_id, topics)

    def mark_not_interested(
        self, article_id: str | None = None, topics: Iterable[str] | None = None
    ) -> UserPreferences:
        return self.preferences.mark_not_interested(article_id, topics)

    def preference_stats(self) -> PreferenceStats:
        return self.preferences.stats()
