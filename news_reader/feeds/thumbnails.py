"""
Thumbnail resolution for feed entries.

Strategies are tried in priority order and the first non-empty URL wins.
Scraping an ``<img>`` tag out of the raw entry HTML is fragile, so it is
the last strategy in the chain.

feedparser flattens the children of ``media:group`` into ``media_content``,
so grouped renditions are covered by the media:content strategy. Those
usually carry no type information; untyped media entries count as images
and only an explicit non-image type or medium rules one out.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Optional, Sequence

ThumbnailStrategy = Callable[[Mapping[str, Any]], Optional[str]]

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)


def _is_image(media: Mapping[str, Any]) -> bool:
    return media.get("medium") == "image" or str(media.get("type", "")).startswith("image")


def _first_url(items: Any, predicate: Callable[[Mapping[str, Any]], bool], *keys: str) -> str | None:
    if not isinstance(items, list):
        return None
    for item in items:
        if not isinstance(item, Mapping) or not predicate(item):
            continue
        for key in keys:
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def from_enclosure(entry: Mapping[str, Any]) -> str | None:
    return _first_url(entry.get("enclosures"), _is_image, "href", "url")


def _is_image_or_untyped(media: Mapping[str, Any]) -> bool:
    if not media.get("type") and not media.get("medium"):
        return True
    return _is_image(media)


def from_media_content(entry: Mapping[str, Any]) -> str | None:
    return _first_url(entry.get("media_content"), _is_image_or_untyped, "url")


def from_media_thumbnail(entry: Mapping[str, Any]) -> str | None:
    return _first_url(entry.get("media_thumbnail"), lambda _: True, "url")


def from_podcast_image(entry: Mapping[str, Any]) -> str | None:
    image = entry.get("image")
    if isinstance(image, Mapping):
        value = image.get("href") or image.get("url")
        return value.strip() if isinstance(value, str) and value.strip() else None
    if isinstance(image, str) and image.strip():
        return image.strip()
    return None


def from_content_img(entry: Mapping[str, Any]) -> str | None:
    chunks: list[str] = []
    content = entry.get("content")
    if isinstance(content, list):
        chunks.extend(str(c.get("value", "")) for c in content if isinstance(c, Mapping))
    chunks.append(str(entry.get("summary", "") or ""))
    for chunk in chunks:
        if "<img" not in chunk.lower():
            continue
        match = _IMG_SRC_RE.search(chunk)
        if match:
            return match.group(1)
    return None


THUMBNAIL_STRATEGIES: Sequence[tuple[str, ThumbnailStrategy]] = (
    ("enclosure", from_enclosure),
    ("media_content", from_media_content),
    ("media_thumbnail", from_media_thumbnail),
    ("podcast_image", from_podcast_image),
    ("content_img", from_content_img),
)


def resolve_thumbnail(
    entry: Mapping[str, Any],
    strategies: Sequence[tuple[str, ThumbnailStrategy]] = THUMBNAIL_STRATEGIES,
) -> str | None:
    """Return the first thumbnail URL produced by the strategy chain."""
    for _name, strategy in strategies:
        url = strategy(entry)
        if url:
            return url
    return None
