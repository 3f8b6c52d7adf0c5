"""
Archive snapshot fallback.

Looks up the newest snapshot of a URL on the archive service. When the
service has none, a "create snapshot" link is synthesized instead; the
service builds such snapshots asynchronously, so content fetched from
that link may be a placeholder page or empty. The link is handed out
fire-and-forget: readiness is never polled.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from urllib.parse import quote

from bs4 import BeautifulSoup
import httpx

from ..config import ArchiveConfig, FetchConfig
from ..core.types import ExtractedArticle
from ..logging_utils import log_event, truncate_text
from .fetcher import fetch_url, probe_redirect
from .normalizer import visible_text

logger = logging.getLogger(__name__)

CREATE_NOTE = "Archive may not exist yet - this will attempt to create one"


@dataclass
class ArchiveLink:
    """Outcome of a snapshot lookup.

    Attributes:
        success: False only when the lookup itself could not be performed
        archive_url: Existing snapshot URL, or a snapshot-creation URL
        exists: Whether archive_url points at an existing snapshot
        error: Lookup failure description
    """
    success: bool
    archive_url: str | None = None
    exists: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        if not self.success:
            return {"success": False, "error": self.error}
        payload: dict[str, object] = {"success": True, "archiveUrl": self.archive_url}
        if not self.exists:
            payload["note"] = CREATE_NOTE
        return payload


class ArchiveFallback:
    """Retrieves article text from the archive service."""

    name = "archive"

    def __init__(
        self,
        cfg: ArchiveConfig,
        fetch_cfg: FetchConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cfg = cfg
        self.fetch_cfg = fetch_cfg
        self.transport = transport

    def newest_url(self, url: str) -> str:
        return f"{self.cfg.base_url.rstrip('/')}/newest/{quote(url, safe='')}"

    def create_url(self, url: str) -> str:
        return f"{self.cfg.base_url.rstrip('/')}/?run=1&url={quote(url, safe='')}"

    async def lookup(self, url: str) -> ArchiveLink:
        """Find the newest snapshot of url, or synthesize a creation link."""
        result = await probe_redirect(
            self.newest_url(url),
            timeout=self.cfg.lookup_timeout_seconds,
            headers={"User-Agent": self.fetch_cfg.user_agent},
            trust_env=self.fetch_cfg.trust_env,
            transport=self.transport,
        )
        if not result.ok:
            log_event(
                logger,
                f"Archive lookup failed for {url}: {result.error}",
                level=logging.WARNING,
                event="archive_failed",
                url=url,
                error=result.error,
            )
            return ArchiveLink(success=False, error=result.error)
        if result.location:
            log_event(logger, f"Archive snapshot found for {url}", event="archive_lookup", url=url, exists=True)
            return ArchiveLink(success=True, archive_url=result.location, exists=True)
        log_event(logger, f"No archive snapshot for {url}", event="archive_lookup", url=url, exists=False)
        return ArchiveLink(success=True, archive_url=self.create_url(url), exists=False)

    async def extract(self, url: str) -> ExtractedArticle:
        """Fetch the archived copy of url and extract its visible text.

        Never raises; every failure yields success=False with empty content.
        """
        link = await self.lookup(url)
        if not link.success or not link.archive_url:
            return self._failed(url, link.error or "archive lookup failed")

        result = await fetch_url(
            link.archive_url,
            timeout=self.cfg.timeout_seconds,
            headers={"User-Agent": self.fetch_cfg.user_agent},
            trust_env=self.fetch_cfg.trust_env,
            transport=self.transport,
        )
        if not result.ok or result.text is None:
            return self._failed(url, result.error or "empty response", link.archive_url)

        try:
            content = self.extract_text(result.text)
        except Exception as exc:  # noqa: BLE001
            return self._failed(url, f"{type(exc).__name__}: {exc}", link.archive_url)

        content = truncate_text(content, self.cfg.max_content_chars)
        success = len(content) > self.cfg.min_content_chars
        if not success:
            return self._failed(url, "archived content too short", result.final_url or link.archive_url)
        return ExtractedArticle(
            content=content,
            format="text",
            source=self.name,
            success=True,
            archive_url=result.final_url or link.archive_url,
            original_url=url,
        )

    def extract_text(self, html: str) -> str:
        """Visible text of the content container, article, or whole page."""
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()
        for selector in (self.cfg.content_selector, "article"):
            element = soup.select_one(selector)
            if element is not None:
                text = visible_text(element)
                if text:
                    return text
        return visible_text(soup)

    def _failed(self, url: str, error: str, archive_url: str | None = None) -> ExtractedArticle:
        log_event(
            logger,
            f"Archive fallback failed for {url}: {error}",
            level=logging.WARNING,
            event="archive_failed",
            url=url,
            error=error,
        )
        return ExtractedArticle(
            content="",
            format="text",
            source=self.name,
            success=False,
            archive_url=archive_url,
            original_url=url,
            error=error,
        )
