"""
Core domain models and helpers.

This package contains data types and logic that are independent of
any specific pipeline stage.
"""

from .types import (
    AggregationResult,
    Article,
    ExtractedArticle,
    ExtractionStatus,
    FeedError,
    FeedSource,
    UserPreferences,
)
from .errors import FeedValidationError, InvalidRequestError, NewsReaderError
from .ids import article_id, slugify

__all__ = [
    "AggregationResult",
    "Article",
    "ExtractedArticle",
    "ExtractionStatus",
    "FeedError",
    "FeedSource",
    "UserPreferences",
    "FeedValidationError",
    "InvalidRequestError",
    "NewsReaderError",
    "article_id",
    "slugify",
]
