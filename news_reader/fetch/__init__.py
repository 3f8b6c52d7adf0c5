"""
Article fetching and extraction.

This package handles HTTP fetching, content normalization, direct
extraction, the archive fallback and the bypass orchestration.
"""

from .fetcher import FetchResult, fetch_url, probe_redirect
from .normalizer import ContentNormalizer, normalize_content
from .extractor import DirectFetcher, extract_from_html
from .archive import ArchiveFallback, ArchiveLink
from .bypass import BypassOrchestrator, classify, needs_fallback, select_result

__all__ = [
    "FetchResult",
    "fetch_url",
    "probe_redirect",
    "ContentNormalizer",
    "normalize_content",
    "DirectFetcher",
    "extract_from_html",
    "ArchiveFallback",
    "ArchiveLink",
    "BypassOrchestrator",
    "classify",
    "needs_fallback",
    "select_result",
]
