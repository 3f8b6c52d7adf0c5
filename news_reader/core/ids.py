"""Identifier helpers for articles and feed sources."""

from __future__ import annotations

import hashlib
import re
import uuid


def article_id(link: str | None, guid: str | None = None) -> str:
    """Return a stable article identifier.

    The id is derived from the link, or the guid when the entry has no link.
    Entries with neither get a random id, so they never collide.

    Args:
        link: The entry's canonical URL
        guid: The entry's guid / id field

    Returns:
        First 16 hex characters of the SHA-256 of the chosen key

    Examples:
        >>> article_id("https://example.com/a") == article_id("https://example.com/a")
        True
    """
    key = (link or "").strip() or (guid or "").strip() or uuid.uuid4().hex
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def slugify(text: str) -> str:
    """Convert text to a registry-key-safe slug.

    Args:
        text: The text to slugify

    Returns:
        A lowercase, hyphenated slug limited to 50 characters
    """
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    if not slug:
        slug = "feed"
    return slug[:50]
