"""Tests for topic extraction and the topic cloud."""

from news_reader.core.types import Article
from news_reader.topics import STOP_WORDS, build_topic_cloud, count_topics, extract_topics

from helpers import START


def _article(title: str, category: str = "Tech", snippet: str = "") -> Article:
    return Article(
        id=title,
        title=title,
        link=f"https://example.com/{len(title)}",
        source="Example",
        source_key="example",
        category=category,
        published_at=START,
        content_snippet=snippet,
    )


def test_extract_topics_filters_short_and_stop_words():
    tokens = list(extract_topics("The Senate passed the new budget bill on Monday"))
    assert tokens == ["senate", "passed", "budget", "bill"]


def test_extract_topics_strips_punctuation_and_digits():
    tokens = list(extract_topics("Apple's iPhone-16 launch: 2025 edition!"))
    assert tokens == ["apple", "iphone", "launch", "edition"]


def test_extract_topics_empty_input():
    assert list(extract_topics("")) == []
    assert list(extract_topics(None)) == []


def test_stop_words_are_never_emitted():
    text = " ".join(sorted(STOP_WORDS))
    assert list(extract_topics(text)) == []


def test_count_topics_orders_by_count_then_first_seen():
    ranked = count_topics(["zebra lions", "lions tigers", "tigers lions"])
    assert ranked == [("lions", 3), ("tigers", 2), ("zebra", 1)]


def test_count_topics_limit():
    texts = [f"word{chr(97 + i)}xyz" for i in range(10)]
    assert len(count_topics(texts, limit=3)) == 3


def test_topic_cloud_caps_at_fifty_entries():
    words = [f"topic{chr(97 + i // 26)}{chr(97 + i % 26)}" for i in range(80)]
    articles = [_article(word) for word in words]
    assert len(build_topic_cloud(articles)) == 50


def test_topic_cloud_skips_hidden_categories():
    articles = [
        _article("Celebrity scandal erupts", category="Gossip"),
        _article("Quantum computing breakthrough", snippet="quantum chips"),
    ]
    cloud = dict(build_topic_cloud(articles, hidden_categories=["Gossip"]))
    assert cloud["quantum"] == 2
    assert "celebrity" not in cloud
    assert "scandal" not in cloud


def test_topic_cloud_skips_hidden_sources_in_any_category():
    rumor = _article("Starlet divorce drama", category="Celebrity")
    rumor.source_key = "celeb"
    articles = [rumor, _article("Quantum computing breakthrough")]
    cloud = dict(build_topic_cloud(articles, hidden_categories=["Gossip"], hidden_sources={"celeb"}))
    assert "starlet" not in cloud
    assert "divorce" not in cloud
    assert cloud["quantum"] == 1
