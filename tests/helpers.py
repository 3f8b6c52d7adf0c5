"""Shared builders for feed documents, clocks and mock transports."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from xml.sax.saxutils import escape

import httpx

from news_reader.config import AppConfig

START = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def rss_item(title: str, link: str, pub_date: str | None = None, description: str = "", extra: str = "") -> str:
    parts = [f"<title>{escape(title)}</title>", f"<link>{escape(link)}</link>"]
    if pub_date:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if description:
        parts.append(f"<description>{escape(description)}</description>")
    if extra:
        parts.append(extra)
    return "<item>" + "".join(parts) + "</item>"


def rss_document(items: list[str], title: str = "Test Feed") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">'
        f"<channel><title>{escape(title)}</title><link>https://example.com/</link>"
        "<description>test</description>"
        + "".join(items)
        + "</channel></rss>"
    )


def make_config(sources: dict[str, dict] | None = None) -> AppConfig:
    cfg = AppConfig()
    cfg.feeds.sources = sources
    cfg.server.warm_cache_on_start = False
    cfg.logging.console = False
    return cfg


def route_transport(routes: dict[str, Callable[[httpx.Request], httpx.Response] | str]) -> httpx.MockTransport:
    """MockTransport answering by exact URL; strings are served as 200 bodies."""

    def handler(request: httpx.Request) -> httpx.Response:
        target = routes.get(str(request.url))
        if target is None:
            return httpx.Response(404, text="not found")
        if isinstance(target, str):
            return httpx.Response(200, text=target)
        return target(request)

    return httpx.MockTransport(handler)
