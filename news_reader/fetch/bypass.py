"""
Paywall bypass orchestration.

Extraction strategies run in order. Each result is tagged ok, insufficient
or failed; a later strategy runs only while the best result so far is not
ok, and replaces it only when it succeeded with more content. The
selection policy is made of pure functions so it can be tested without
any network access.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from ..core.types import ExtractedArticle, ExtractionStatus
from ..logging_utils import log_event

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Awaitable[ExtractedArticle]]


def classify(result: ExtractedArticle, sufficient_chars: int) -> ExtractionStatus:
    """Tag a strategy result.

    A successful result shorter than sufficient_chars looks like a paywall
    teaser and is tagged insufficient.
    """
    if not result.success:
        return ExtractionStatus.FAILED
    if len(result.content) < sufficient_chars:
        return ExtractionStatus.INSUFFICIENT
    return ExtractionStatus.OK


def needs_fallback(result: ExtractedArticle, sufficient_chars: int) -> bool:
    return classify(result, sufficient_chars) is not ExtractionStatus.OK


def select_result(current: ExtractedArticle, candidate: ExtractedArticle) -> ExtractedArticle:
    """Prefer candidate only if it succeeded and carries more content."""
    if candidate.success and len(candidate.content) > len(current.content):
        return candidate
    return current


class BypassOrchestrator:
    """Runs the extraction strategies and returns the best result.

    Always returns a result; when nothing worked it has success=False and
    empty content, and callers render a "could not retrieve" state.
    """

    def __init__(self, strategies: Sequence[tuple[str, Strategy]], sufficient_chars: int = 500):
        if not strategies:
            raise ValueError("At least one extraction strategy is required")
        self.strategies = list(strategies)
        self.sufficient_chars = sufficient_chars

    async def extract(self, url: str) -> ExtractedArticle:
        best: ExtractedArticle | None = None
        for name, strategy in self.strategies:
            if best is not None:
                if not needs_fallback(best, self.sufficient_chars):
                    break
                log_event(
                    logger,
                    f"Trying {name} for {url}",
                    event="bypass_fallback",
                    url=url,
                    strategy=name,
                    status=classify(best, self.sufficient_chars).value,
                )
            try:
                result = await strategy(url)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Extraction strategy %s raised for %s", name, url)
                result = ExtractedArticle(
                    content="",
                    format="text",
                    source=name,
                    success=False,
                    original_url=url,
                    error=f"{type(exc).__name__}: {exc}",
                )
            best = result if best is None else select_result(best, result)

        assert best is not None
        best.original_url = url
        return best
