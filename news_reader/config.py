"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: Direct page fetching settings
- ExtractConfig: Article container selection and size thresholds
- ArchiveConfig: Archive snapshot service settings
- FeedConfig: RSS feed fetching and registry settings
- CacheConfig: Cache staleness and derived view sizes
- PreferencesConfig: Preference file location and history bounds
- LoggingConfig: Logging behavior
- ServerConfig: HTTP server settings
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class FetchConfig:
    """Configuration for direct article page fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        user_agent: Browser-like User-Agent header string
        accept: Accept header sent with page requests
        trust_env: Whether to respect system proxy settings
    """

    timeout_seconds: float = 15.0
    user_agent: str = BROWSER_USER_AGENT
    accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
    trust_env: bool = True


@dataclass
class ExtractConfig:
    """Configuration for article body extraction.

    Attributes:
        container_selectors: CSS selectors tried in order to locate the article body
        noise_selectors: CSS selectors removed from the page before extraction
        image_attributes: Image source attributes, in priority order
        min_container_chars: Visible text a container needs to be accepted
        min_paragraph_chars: Shortest paragraph kept by the flat fallback
        max_content_chars: Truncation limit for extracted content
        sufficient_chars: Below this length a direct result triggers the archive fallback
    """

    container_selectors: list[str] = field(
        default_factory=lambda: [
            "article",
            '[class*="article-body"]',
            '[class*="article-content"]',
            '[class*="post-content"]',
            '[class*="entry-content"]',
            ".story-body",
            ".content-body",
            "main",
        ]
    )
    noise_selectors: list[str] = field(
        default_factory=lambda: [
            "script",
            "style",
            "noscript",
            "nav",
            "header",
            "footer",
            "aside",
            "iframe",
            ".ad",
            ".advertisement",
            ".social-share",
            ".comments",
            "#comments",
            ".related-articles",
            '[class*="ad-"]',
            '[id*="ad-"]',
            '[class*="promo"]',
            '[class*="newsletter"]',
            '[class*="subscribe"]',
        ]
    )
    image_attributes: list[str] = field(
        default_factory=lambda: ["src", "data-src", "data-lazy-src"]
    )
    min_container_chars: int = 200
    min_paragraph_chars: int = 30
    max_content_chars: int = 15000
    sufficient_chars: int = 500


@dataclass
class ArchiveConfig:
    """Configuration for the archive snapshot service.

    Attributes:
        base_url: Root URL of the archive service
        content_selector: Selector of the service's content container
        timeout_seconds: Timeout for fetching snapshot content
        lookup_timeout_seconds: Timeout for the newest-snapshot lookup
        max_content_chars: Truncation limit for snapshot text
        min_content_chars: Snapshot text must exceed this to count as success
    """

    base_url: str = "https://archive.today"
    content_selector: str = "#CONTENT"
    timeout_seconds: float = 15.0
    lookup_timeout_seconds: float = 10.0
    max_content_chars: int = 10000
    min_content_chars: int = 100


@dataclass
class FeedConfig:
    """Configuration for RSS feed aggregation.

    Attributes:
        timeout_seconds: Per-source fetch timeout
        user_agent: User-Agent header sent to feed hosts
        snippet_chars: Maximum snippet length
        hidden_categories: Categories excluded from the topic cloud and digest
        sources: Optional registry override, keyed by source key
    """

    timeout_seconds: float = 10.0
    user_agent: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) NewsReader/1.0"
    snippet_chars: int = 300
    hidden_categories: list[str] = field(default_factory=lambda: ["Gossip"])
    sources: dict[str, dict[str, Any]] | None = None


@dataclass
class CacheConfig:
    """Configuration for the article cache.

    Attributes:
        max_age_minutes: Cache age after which a read triggers a refresh
        topic_limit: Number of entries in the topic cloud
        category_preview: Recent articles shown per category
        digest_top_stories: Top stories per category in the digest
        default_page_size: Page size when the caller gives none
    """

    max_age_minutes: float = 15.0
    topic_limit: int = 50
    category_preview: int = 5
    digest_top_stories: int = 3
    default_page_size: int = 50


@dataclass
class PreferencesConfig:
    """Configuration for persisted user preferences.

    Attributes:
        path: JSON file holding the preference record
        max_read_articles: Read-history entries retained
        max_topics: Interested / not-interested topic entries retained
        stats_limit: Topics reported by preference statistics
    """

    path: str = "preferences.json"
    max_read_articles: int = 500
    max_topics: int = 200
    stats_limit: int = 10


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        directory: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "news_reader.jsonl"
    directory: str = "logs"


@dataclass
class ServerConfig:
    """Configuration for the HTTP server.

    Attributes:
        host: Interface to bind
        port: Port to listen on (the PORT environment variable wins)
        warm_cache_on_start: Run an aggregation when the server starts
    """

    host: str = "127.0.0.1"
    port: int = 3000
    warm_cache_on_start: bool = True


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    feeds: FeedConfig = field(default_factory=FeedConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    preferences: PreferencesConfig = field(default_factory=PreferencesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


_SECTIONS = {
    "fetch": FetchConfig,
    "extract": ExtractConfig,
    "archive": ArchiveConfig,
    "feeds": FeedConfig,
    "cache": CacheConfig,
    "preferences": PreferencesConfig,
    "logging": LoggingConfig,
    "server": ServerConfig,
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return _apply_env(AppConfig())

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _apply_env(_merge_config(AppConfig(), raw))


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(**{name: cls(**data[name]) for name, cls in _SECTIONS.items()})


def _apply_env(cfg: AppConfig) -> AppConfig:
    """Apply environment overrides (PORT, NEWS_READER_PREFERENCES)."""
    port = os.getenv("PORT")
    if port and port.isdigit():
        cfg.server.port = int(port)
    prefs_path = os.getenv("NEWS_READER_PREFERENCES")
    if prefs_path:
        cfg.preferences.path = prefs_path
    return cfg
