"""Tests for concurrent feed aggregation."""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from news_reader.config import FeedConfig
from news_reader.core.errors import FeedValidationError
from news_reader.core.ids import article_id
from news_reader.core.types import Article, FeedSource
from news_reader.feeds.aggregator import (
    FeedAggregator,
    SourceResult,
    entry_to_article,
    merge_articles,
    parse_feed_document,
)
from news_reader.feeds.thumbnails import resolve_thumbnail

from helpers import START, FakeClock, route_transport, rss_document, rss_item

SOURCE_A = FeedSource(key="alpha", url="https://alpha.example.com/feed", name="Alpha", category="Tech", icon="A")
SOURCE_B = FeedSource(key="beta", url="https://beta.example.com/feed", name="Beta", category="Politics", icon="B")

FEED_A = rss_document(
    [
        rss_item("Rocket launch delayed", "https://alpha.example.com/1", "Mon, 06 Jan 2025 09:00:00 GMT"),
        rss_item("Museum reopens downtown", "https://alpha.example.com/2", "Mon, 06 Jan 2025 11:00:00 GMT"),
        rss_item("Chip makers rally", "https://alpha.example.com/3", "Mon, 06 Jan 2025 10:00:00 GMT"),
    ],
    title="Alpha",
)


def _article(link: str, title: str, published: datetime, source: FeedSource = SOURCE_A) -> Article:
    return Article(
        id=article_id(link),
        title=title,
        link=link,
        source=source.name,
        source_key=source.key,
        category=source.category,
        published_at=published,
    )


def test_source_timeout_is_isolated():
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, text=FEED_A)

    transport = route_transport({SOURCE_A.url: FEED_A, SOURCE_B.url: slow})
    aggregator = FeedAggregator(FeedConfig(timeout_seconds=0.05), transport=transport, clock=FakeClock())

    result = asyncio.run(aggregator.aggregate([SOURCE_A, SOURCE_B]))

    assert len(result.articles) == 3
    assert len(result.errors) == 1
    assert result.errors[0].source_key == "beta"
    assert result.errors[0].to_dict()["feed"] == "Beta"
    assert "Timed out" in result.errors[0].error


def test_malformed_and_unreachable_feeds_become_errors():
    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    broken = FeedSource(key="broken", url="https://broken.example.com/feed", name="Broken", category="Tech")
    transport = route_transport(
        {SOURCE_A.url: FEED_A, SOURCE_B.url: refused, broken.url: "<html><body>Not a feed</body></html>"}
    )
    aggregator = FeedAggregator(FeedConfig(), transport=transport, clock=FakeClock())

    result = asyncio.run(aggregator.aggregate([SOURCE_A, SOURCE_B, broken]))

    assert [a.title for a in result.articles] == ["Museum reopens downtown", "Chip makers rally", "Rocket launch delayed"]
    assert sorted(e.source_key for e in result.errors) == ["beta", "broken"]


def test_all_sources_failing_yields_empty_generation():
    aggregator = FeedAggregator(FeedConfig(), transport=route_transport({}), clock=FakeClock())
    result = asyncio.run(aggregator.aggregate([SOURCE_A, SOURCE_B]))
    assert result.articles == []
    assert len(result.errors) == 2
    assert result.categories == {}
    assert result.topics == []


def test_views_are_derived_from_the_same_articles():
    feed_b = rss_document(
        [rss_item("Senate budget vote", "https://beta.example.com/1", "Mon, 06 Jan 2025 08:00:00 GMT")]
    )
    transport = route_transport({SOURCE_A.url: FEED_A, SOURCE_B.url: feed_b})
    clock = FakeClock()
    aggregator = FeedAggregator(FeedConfig(), transport=transport, clock=clock)

    result = asyncio.run(aggregator.aggregate([SOURCE_A, SOURCE_B]))

    assert result.fetched_at == clock.now
    assert list(result.categories) == ["Tech", "Politics"]
    assert sum(len(items) for items in result.categories.values()) == len(result.articles)
    assert [a.title for a in result.categories["Tech"]][0] == "Museum reopens downtown"
    assert dict(result.topics)["senate"] == 1
    published = [a.published_at for a in result.articles]
    assert published == sorted(published, reverse=True)


def test_entry_to_article_defaults():
    feed = rss_document(
        [
            rss_item(
                "Quiet entry",
                "https://alpha.example.com/q",
                description="<p>Some <b>bold</b> words " + "padding " * 60 + "</p>",
            )
        ]
    )
    parsed = parse_feed_document(feed, SOURCE_A.url)
    article = entry_to_article(parsed.entries[0], SOURCE_A, START)

    assert article.published_at == START
    assert article.author == "Alpha"
    assert article.category == "Tech"
    assert article.icon == "A"
    assert article.content_snippet.startswith("Some bold words")
    assert len(article.content_snippet) == 300
    assert article.full_content.startswith("<p>Some")
    assert article.id == article_id("https://alpha.example.com/q")
    assert parsed.title == "Test Feed"


def test_published_date_is_parsed_as_utc():
    parsed = parse_feed_document(FEED_A, SOURCE_A.url)
    article = entry_to_article(parsed.entries[0], SOURCE_A, START)
    assert article.published_at == datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def test_parse_rejects_non_feed_documents():
    with pytest.raises(FeedValidationError) as excinfo:
        parse_feed_document("just some text, nothing else", "https://x.example.com/feed")
    assert excinfo.value.url == "https://x.example.com/feed"


def test_article_id_is_stable_and_collisions_overwrite_in_place():
    assert article_id("https://a.example.com/x") == article_id("https://a.example.com/x")
    assert article_id(None, "guid-1") == article_id("", "guid-1")
    assert article_id(None) != article_id(None)

    early = START - timedelta(hours=1)
    first = _article("https://shared.example.com/x", "Shared story", early)
    other = _article("https://alpha.example.com/y", "Other story", START)
    replacement = _article("https://shared.example.com/x", "Shared story (beta)", early, source=SOURCE_B)

    merged = merge_articles([SourceResult(SOURCE_A, [first, other]), SourceResult(SOURCE_B, [replacement])])

    assert len(merged) == 2
    assert merged[1].source_key == "beta"
    assert merged[1].title == "Shared story (beta)"


def test_merge_keeps_merge_order_on_ties():
    a = _article("https://alpha.example.com/a", "First", START)
    b = _article("https://beta.example.com/b", "Second", START, source=SOURCE_B)
    merged = merge_articles([SourceResult(SOURCE_A, [a]), SourceResult(SOURCE_B, [b])])
    assert [x.title for x in merged] == ["First", "Second"]


def test_thumbnail_priority_chain():
    entry = {
        "enclosures": [{"href": "https://img.example.com/enclosure.jpg", "type": "image/jpeg"}],
        "media_thumbnail": [{"url": "https://img.example.com/thumb.jpg"}],
    }
    assert resolve_thumbnail(entry) == "https://img.example.com/enclosure.jpg"

    entry = {
        "enclosures": [{"href": "https://cdn.example.com/episode.mp3", "type": "audio/mpeg"}],
        "media_content": [{"url": "https://img.example.com/video.mp4", "type": "video/mp4"}],
        "media_thumbnail": [{"url": "https://img.example.com/thumb.jpg"}],
    }
    assert resolve_thumbnail(entry) == "https://img.example.com/thumb.jpg"

    assert resolve_thumbnail({"media_content": [{"url": "https://img.example.com/g.jpg"}]}) == "https://img.example.com/g.jpg"
    assert resolve_thumbnail({"image": {"href": "https://img.example.com/show.png"}}) == "https://img.example.com/show.png"
    assert (
        resolve_thumbnail({"summary": '<p>Intro <img class="x" src="https://img.example.com/inline.gif"></p>'})
        == "https://img.example.com/inline.gif"
    )
    assert resolve_thumbnail({"summary": "no images here"}) is None


def test_thumbnail_from_parsed_feed():
    feed = rss_document(
        [
            rss_item(
                "With picture",
                "https://alpha.example.com/p",
                extra='<media:content url="https://img.example.com/m.jpg" medium="image" />',
            )
        ]
    )
    parsed = parse_feed_document(feed, SOURCE_A.url)
    assert entry_to_article(parsed.entries[0], SOURCE_A, START).image == "https://img.example.com/m.jpg"


def test_similar_titles_with_distinct_links_are_all_kept():
    feed = rss_document(
        [
            rss_item(f"Live updates: Ukraine war, day {day}", f"https://alpha.example.com/live/{day}",
                     f"Mon, 06 Jan 2025 {day - 90:02d}:00:00 GMT")
            for day in (100, 101, 102)
        ]
    )
    aggregator = FeedAggregator(FeedConfig(), transport=route_transport({SOURCE_A.url: feed}), clock=FakeClock())

    result = asyncio.run(aggregator.aggregate([SOURCE_A]))

    assert [a.title for a in result.articles] == [
        "Live updates: Ukraine war, day 102",
        "Live updates: Ukraine war, day 101",
        "Live updates: Ukraine war, day 100",
    ]


def test_hidden_source_is_left_out_of_topics_whatever_its_category():
    celeb = FeedSource(
        key="celeb", url="https://celeb.example.com/feed", name="Celeb", category="Celebrity", hidden=True
    )
    routes = {
        SOURCE_A.url: FEED_A,
        celeb.url: rss_document([rss_item("Starlet divorce scandal", "https://celeb.example.com/1")]),
    }
    aggregator = FeedAggregator(FeedConfig(), transport=route_transport(routes), clock=FakeClock())

    result = asyncio.run(aggregator.aggregate([SOURCE_A, celeb]))

    words = dict(result.topics)
    assert "starlet" not in words
    assert "scandal" not in words
    assert words["rocket"] == 1
    assert len(result.categories["Celebrity"]) == 1


def test_untyped_media_content_outranks_media_thumbnail():
    entry = {
        "media_content": [{"url": "https://img.example.com/full.jpg"}],
        "media_thumbnail": [{"url": "https://img.example.com/thumb.jpg"}],
    }
    assert resolve_thumbnail(entry) == "https://img.example.com/full.jpg"

    feed = rss_document(
        [
            rss_item(
                "Untyped media",
                "https://alpha.example.com/u",
                extra='<media:content url="https://img.example.com/x.jpg" />'
                '<media:thumbnail url="https://img.example.com/x-small.jpg" />',
            )
        ]
    )
    parsed = parse_feed_document(feed, SOURCE_A.url)
    assert entry_to_article(parsed.entries[0], SOURCE_A, START).image == "https://img.example.com/x.jpg"
