"""
Feed source registry.

The registry starts from the built-in source list (or the ``feeds.sources``
configuration override) and grows with user-added feeds at runtime.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from ..core.errors import InvalidRequestError
from ..core.types import FeedSource


DEFAULT_SOURCES: dict[str, dict[str, Any]] = {
    # Entertainment
    "deadline": {"url": "https://deadline.com/feed/", "name": "Deadline", "category": "Entertainment", "icon": "🎬"},
    "indiewire": {"url": "https://www.indiewire.com/feed/", "name": "IndieWire", "category": "Entertainment", "icon": "🎭"},
    "avclub": {"url": "https://www.avclub.com/rss", "name": "The A.V. Club", "category": "Entertainment", "icon": "📺"},
    "rollingstone": {"url": "https://www.rollingstone.com/feed/", "name": "Rolling Stone", "category": "Entertainment", "icon": "🎸"},
    "variety": {"url": "https://variety.com/feed/", "name": "Variety", "category": "Entertainment", "icon": "🎥"},
    "hollywoodreporter": {"url": "https://www.hollywoodreporter.com/feed/", "name": "Hollywood Reporter", "category": "Entertainment", "icon": "⭐"},
    # Politics
    "thehill": {"url": "https://thehill.com/feed/", "name": "The Hill", "category": "Politics", "icon": "🏛️"},
    "politico": {"url": "https://www.politico.com/rss/politicopicks.xml", "name": "Politico", "category": "Politics", "icon": "🗳️"},
    # Tech
    "techcrunch": {"url": "https://techcrunch.com/feed/", "name": "TechCrunch", "category": "Tech", "icon": "💻"},
    "theverge": {"url": "https://www.theverge.com/rss/index.xml", "name": "The Verge", "category": "Tech", "icon": "📱"},
    "arstechnica": {"url": "https://feeds.arstechnica.com/arstechnica/index", "name": "Ars Technica", "category": "Tech", "icon": "🔬"},
    "wired": {"url": "https://www.wired.com/feed/rss", "name": "Wired", "category": "Tech", "icon": "⚡"},
    # General News
    "npr": {"url": "https://feeds.npr.org/1001/rss.xml", "name": "NPR News", "category": "General", "icon": "📻"},
    "apnews": {"url": "https://feedx.net/rss/ap.xml", "name": "AP News", "category": "General", "icon": "🌐"},
    "bbc": {"url": "https://feeds.bbci.co.uk/news/rss.xml", "name": "BBC News", "category": "General", "icon": "🇬🇧"},
    # Gossip (hidden from default views)
    "tmz": {"url": "https://www.tmz.com/rss.xml", "name": "TMZ", "category": "Gossip", "icon": "📸", "hidden": True},
}


class FeedRegistry:
    """Ordered collection of feed sources keyed by registry key."""

    def __init__(self, sources: Iterable[FeedSource] = ()):
        self._sources: dict[str, FeedSource] = {}
        for source in sources:
            self.add(source)

    @classmethod
    def from_config(cls, sources: dict[str, dict[str, Any]] | None = None) -> "FeedRegistry":
        raw = sources if sources is not None else DEFAULT_SOURCES
        return cls(FeedSource.from_dict(key, data) for key, data in raw.items())

    def __iter__(self) -> Iterator[FeedSource]:
        return iter(list(self._sources.values()))

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, key: object) -> bool:
        return key in self._sources

    def get(self, key: str) -> FeedSource | None:
        return self._sources.get(key)

    def sources(self, include_hidden: bool = True) -> list[FeedSource]:
        return [s for s in self._sources.values() if include_hidden or not s.hidden]

    def hidden_keys(self) -> set[str]:
        return {s.key for s in self._sources.values() if s.hidden}

    def custom_sources(self) -> list[FeedSource]:
        return [s for s in self._sources.values() if s.custom]

    def find_by_url(self, url: str) -> FeedSource | None:
        normalized = url.strip().rstrip("/")
        for source in self._sources.values():
            if source.url.strip().rstrip("/") == normalized:
                return source
        return None

    def add(self, source: FeedSource) -> FeedSource:
        """Register a source.

        Raises:
            InvalidRequestError: If the key or the URL is already registered
        """
        if source.key in self._sources:
            raise InvalidRequestError(f"Feed key '{source.key}' is already registered")
        existing = self.find_by_url(source.url)
        if existing is not None:
            raise InvalidRequestError(f"Feed URL is already registered as '{existing.key}'")
        self._sources[source.key] = source
        return source

    def remove(self, key: str) -> FeedSource:
        """Unregister a user-added source.

        Raises:
            InvalidRequestError: If the key is unknown or names a built-in source
        """
        source = self._sources.get(key)
        if source is None:
            raise InvalidRequestError(f"Unknown feed '{key}'")
        if not source.custom:
            raise InvalidRequestError(f"Feed '{key}' is built in and cannot be removed")
        del self._sources[key]
        return source
