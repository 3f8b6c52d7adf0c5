"""
Topic extraction and topic-cloud building.

Tokens are lower-cased alphabetic words longer than three characters that
are not common English function words or time-filler terms.
"""

from __future__ import annotations

from collections import Counter
import re
from typing import Iterable, Iterator

from .core.types import Article


_NON_ALPHA_RE = re.compile(r"[^a-z\s]")

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
        "by", "from", "up", "about", "into", "through", "during", "before", "after",
        "above", "below", "between", "under", "again", "further", "then", "once",
        "here", "there", "when", "where", "why", "how", "all", "each", "few", "more",
        "most", "other", "some", "such", "no", "not", "only", "own", "same", "so",
        "than", "too", "very", "can", "will", "just", "should", "now", "says", "said",
        "new", "has", "have", "had", "was", "were", "been", "being", "its", "this",
        "that", "these", "those", "what", "which", "who", "whom", "their", "them",
        "his", "her", "she", "he", "it", "you", "your", "we", "our", "they", "are",
        "is", "be", "as", "if", "would", "could", "get", "like", "make", "made",
        "over", "also", "back", "first", "year", "years", "one", "two", "may", "out",
        "today", "yesterday", "tomorrow", "week", "weeks", "month", "months", "time",
        "times", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
        "sunday", "still", "while", "against", "without", "because", "does", "doing",
        "many", "much", "even", "ever", "every", "might", "must", "well",
        "according", "report", "reports", "three", "last", "next", "days",
    }
)


def extract_topics(text: str | None) -> Iterator[str]:
    """Yield candidate topic tokens from text.

    Never fails; empty or missing text yields nothing.

    Examples:
        >>> list(extract_topics("The Senate passed the budget bill today"))
        ['senate', 'passed', 'budget', 'bill']
    """
    if not text:
        return
    cleaned = _NON_ALPHA_RE.sub(" ", text.lower())
    for word in cleaned.split():
        if len(word) > 3 and word not in STOP_WORDS:
            yield word


def count_topics(texts: Iterable[str], limit: int = 50) -> list[tuple[str, int]]:
    """Count tokens across texts and return the top entries.

    Sorted by count descending; ties keep first-encountered order.
    """
    counts: Counter[str] = Counter()
    for text in texts:
        counts.update(extract_topics(text))
    return counts.most_common(limit)


def is_suppressed(article: Article, hidden_categories: Iterable[str], hidden_sources: Iterable[str]) -> bool:
    """Whether article is left out of the topic cloud and the digest.

    An article is suppressed when its category is hidden or when it comes
    from a hidden source, whatever that source's category.
    """
    return article.category in hidden_categories or article.source_key in hidden_sources


def build_topic_cloud(
    articles: Iterable[Article],
    hidden_categories: Iterable[str] = (),
    hidden_sources: Iterable[str] = (),
    limit: int = 50,
) -> list[tuple[str, int]]:
    """Build the topic cloud from article titles and snippets.

    Suppressed articles (hidden category or hidden source) contribute nothing.
    """
    categories = set(hidden_categories)
    sources = set(hidden_sources)
    texts = (
        f"{article.title} {article.content_snippet or ''}"
        for article in articles
        if not is_suppressed(article, categories, sources)
    )
    return count_topics(texts, limit)
