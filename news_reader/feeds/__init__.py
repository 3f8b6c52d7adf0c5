"""
Feed sources and aggregation.

This package holds the feed registry, the thumbnail resolution chain and
the concurrent aggregator that builds each cache generation.
"""

from .registry import DEFAULT_SOURCES, FeedRegistry
from .thumbnails import THUMBNAIL_STRATEGIES, resolve_thumbnail
from .aggregator import FeedAggregator, SourceResult, entry_to_article, merge_articles

__all__ = [
    "DEFAULT_SOURCES",
    "FeedRegistry",
    "THUMBNAIL_STRATEGIES",
    "resolve_thumbnail",
    "FeedAggregator",
    "SourceResult",
    "entry_to_article",
    "merge_articles",
]
