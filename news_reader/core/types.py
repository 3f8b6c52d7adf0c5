"""
Core data types for the news reader.

This module defines the fundamental data structures shared by the pipeline:
- FeedSource: One configured RSS origin
- Article: A normalized item derived from a feed entry
- FeedError: Diagnostic for a source that failed during aggregation
- AggregationResult: One cache generation and its derived views
- ExtractedArticle: Result of the content extraction / bypass pipeline
- UserPreferences: The single persisted preference record
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass
class FeedSource:
    """A registry entry describing one RSS origin.

    Attributes:
        key: Registry key, unique across the registry
        url: Feed document URL
        name: Human-readable feed name
        category: Category the feed's articles belong to
        icon: Display glyph
        hidden: Excluded from default views, still reachable by category filter
        custom: Added by the user at runtime (persisted with preferences)
    """
    key: str
    url: str
    name: str
    category: str
    icon: str = ""
    hidden: bool = False
    custom: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "url": self.url,
            "name": self.name,
            "category": self.category,
            "icon": self.icon,
        }
        if self.hidden:
            payload["hidden"] = True
        return payload

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any], custom: bool = False) -> "FeedSource":
        return cls(
            key=key,
            url=data["url"],
            name=data.get("name") or key,
            category=data.get("category") or "General",
            icon=data.get("icon") or "",
            hidden=bool(data.get("hidden", False)),
            custom=custom,
        )


@dataclass
class Article:
    """One normalized article produced by an aggregation cycle.

    Attributes:
        id: Stable identifier derived from link or guid
        title: The article headline
        link: Canonical source URL
        source: Feed name
        source_key: Registry key of the feed
        category: Category inherited from the feed
        icon: Display glyph inherited from the feed
        author: Author, or the feed name when the entry has none
        published_at: Publication time (aggregation time when the feed omits it)
        content_snippet: Plain-text preview, at most 300 characters
        full_content: Raw feed-provided HTML/text, if any
        image: Best-effort thumbnail URL, if any
    """
    id: str
    title: str
    link: str
    source: str
    source_key: str
    category: str
    published_at: datetime
    icon: str = ""
    author: str = ""
    content_snippet: str = ""
    full_content: str | None = None
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "source": self.source,
            "sourceKey": self.source_key,
            "category": self.category,
            "icon": self.icon,
            "author": self.author,
            "publishedAt": self.published_at.isoformat(),
            "contentSnippet": self.content_snippet,
            "fullContent": self.full_content,
            "image": self.image,
        }


@dataclass
class FeedError:
    """A source-scoped failure recorded during aggregation."""
    source_key: str
    source: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"feed": self.source, "sourceKey": self.source_key, "error": self.error}


@dataclass
class AggregationResult:
    """One cache generation: the article list plus views derived from it.

    All views are computed from the same article list, so they are always
    mutually consistent.

    Attributes:
        articles: Articles sorted by publication time, newest first
        fetched_at: When the aggregation completed
        categories: Articles grouped by category, each group newest first
        topics: Ranked (token, count) pairs
        errors: One entry per failed source
    """
    articles: list[Article]
    fetched_at: datetime
    categories: dict[str, list[Article]] = field(default_factory=dict)
    topics: list[tuple[str, int]] = field(default_factory=list)
    errors: list[FeedError] = field(default_factory=list)


class ExtractionStatus(str, Enum):
    """Outcome tag of a single extraction strategy."""
    OK = "ok"
    INSUFFICIENT = "insufficient"
    FAILED = "failed"


@dataclass
class ExtractedArticle:
    """Result of the extraction pipeline for one URL.

    Never cached; computed fresh per request.

    Attributes:
        content: Normalized body, truncated to the configured maximum
        format: "markdown" for structured output, "text" for plain text
        source: Strategy that produced the content ("direct" or "archive")
        success: Whether the strategy produced usable content
        archive_url: Snapshot URL when the archive produced the content
        original_url: The URL that was requested
        error: Failure description, if any
    """
    content: str
    format: str
    source: str
    success: bool
    archive_url: str | None = None
    original_url: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "content": self.content,
            "format": self.format,
            "source": self.source,
            "archiveUrl": self.archive_url,
            "originalUrl": self.original_url,
        }


@dataclass
class UserPreferences:
    """The single persisted user preference record.

    The three history lists are bounded; the store trims them to their
    most recent entries on every mutation.
    """
    read_articles: list[str] = field(default_factory=list)
    not_interested_topics: list[str] = field(default_factory=list)
    interested_topics: list[str] = field(default_factory=list)
    custom_feeds: list[FeedSource] = field(default_factory=list)
    text_size: float = 16
    reality_mode: bool = False
    hide_read_mode: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "readArticles": list(self.read_articles),
            "notInterestedTopics": list(self.not_interested_topics),
            "interestedTopics": list(self.interested_topics),
            "customFeeds": [feed.to_dict() for feed in self.custom_feeds],
            "textSize": self.text_size,
            "realityMode": self.reality_mode,
            "hideReadMode": self.hide_read_mode,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserPreferences":
        feeds = [
            FeedSource.from_dict(item["key"], item, custom=True)
            for item in data.get("customFeeds", [])
        ]
        return cls(
            read_articles=[str(item) for item in data.get("readArticles", [])],
            not_interested_topics=[str(item) for item in data.get("notInterestedTopics", [])],
            interested_topics=[str(item) for item in data.get("interestedTopics", [])],
            custom_feeds=feeds,
            text_size=float(data.get("textSize", 16)),
            reality_mode=bool(data.get("realityMode", False)),
            hide_read_mode=bool(data.get("hideReadMode", False)),
        )


@dataclass
class ArticlePage:
    """A filtered, paginated slice of the cache."""
    articles: list[Article]
    total: int
    page: int
    limit: int
    last_fetch: datetime | None


@dataclass
class CategorySummary:
    count: int
    latest: list[Article]


@dataclass
class DigestSection:
    count: int
    top_stories: list[Article]


@dataclass
class Digest:
    """Morning digest: per-category top stories over the current cache."""
    generated: datetime
    total_articles: int
    categories: dict[str, DigestSection]


@dataclass
class RefreshReport:
    article_count: int
    categories: list[str]
    errors: list[FeedError]
    last_fetch: datetime


@dataclass
class PreferenceStats:
    read_count: int
    top_interested: list[tuple[str, int]]
    top_not_interested: list[tuple[str, int]]
