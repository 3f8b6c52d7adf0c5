"""Tests for the HTTP surface."""

from fastapi.testclient import TestClient

from news_reader.api import create_app
from news_reader.service import NewsService

from helpers import FakeClock, make_config, route_transport, rss_document, rss_item

FEED_URL = "https://alpha.example.com/feed"
SOURCES = {"alpha": {"url": FEED_URL, "name": "Alpha", "category": "Tech", "icon": "A"}}
FEED = rss_document(
    [
        rss_item("Quantum chip unveiled", "https://alpha.example.com/1", "Mon, 06 Jan 2025 11:00:00 GMT"),
        rss_item("Rocket launch delayed", "https://alpha.example.com/2", "Mon, 06 Jan 2025 09:00:00 GMT"),
    ]
)


def _client(tmp_path, routes=None) -> tuple[TestClient, NewsService]:
    service = NewsService(
        make_config(SOURCES),
        transport=route_transport(routes or {FEED_URL: FEED}),
        clock=FakeClock(),
        preferences_path=tmp_path / "prefs.json",
    )
    return TestClient(create_app(service=service)), service


def test_health(tmp_path):
    client, _ = _client(tmp_path)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_articles_listing_shape(tmp_path):
    client, _ = _client(tmp_path)
    body = client.get("/api/articles", params={"limit": 1}).json()

    assert body["success"] is True
    assert body["total"] == 2
    assert body["page"] == 1
    assert body["limit"] == 1
    assert body["lastFetch"] is not None
    article = body["articles"][0]
    assert article["title"] == "Quantum chip unveiled"
    assert article["sourceKey"] == "alpha"
    assert article["publishedAt"].startswith("2025-01-06T11:00:00")


def test_categories_wordcloud_and_summary(tmp_path):
    client, _ = _client(tmp_path)

    categories = client.get("/api/categories").json()["categories"]
    assert categories["Tech"]["count"] == 2
    assert len(categories["Tech"]["latest"]) == 2

    topics = client.get("/api/wordcloud").json()["topics"]
    assert {"word": "quantum", "count": 1} in topics

    summary = client.get("/api/summary").json()["summary"]
    assert summary["totalArticles"] == 2
    assert summary["categories"]["Tech"]["topStories"][0]["title"] == "Quantum chip unveiled"


def test_refresh_reports_failed_feeds(tmp_path):
    client, service = _client(tmp_path, routes={"https://unused.example.com/": FEED})
    body = client.post("/api/refresh").json()
    assert body["articleCount"] == 0
    assert body["errors"] == [{"feed": "Alpha", "sourceKey": "alpha", "error": "HTTP 404"}]


def test_read_without_url_is_bad_request(tmp_path):
    client, _ = _client(tmp_path)
    resp = client.get("/api/article/read")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "URL required"}

    assert client.get("/api/article/archive").status_code == 400


def test_unexpected_errors_become_500(tmp_path, monkeypatch):
    client, service = _client(tmp_path)

    async def broken():
        raise RuntimeError("boom")

    monkeypatch.setattr(service, "trending_topics", broken)
    resp = client.get("/api/wordcloud")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Internal server error"}


def test_sources_endpoints(tmp_path):
    mine = "https://mine.example.com/rss"
    client, _ = _client(
        tmp_path,
        routes={FEED_URL: FEED, mine: rss_document([rss_item("Garden notes", "https://mine.example.com/1")])},
    )

    assert [s["key"] for s in client.get("/api/sources").json()["sources"]] == ["alpha"]

    added = client.post("/api/sources", json={"url": mine, "name": "Mine", "category": "Hobby"}).json()
    assert added["source"]["key"] == "mine"
    assert added["source"]["category"] == "Hobby"
    assert added["articleCount"] == 3

    assert client.post("/api/sources", json={"name": "no url"}).status_code == 400
    assert client.delete("/api/sources/alpha").status_code == 400
    assert client.delete("/api/sources/mine").json()["removed"]["key"] == "mine"


def test_preferences_endpoints(tmp_path):
    client, _ = _client(tmp_path)

    prefs = client.get("/api/preferences").json()["preferences"]
    assert prefs["textSize"] == 16

    updated = client.put("/api/preferences", json={"textSize": 20, "hideReadMode": True}).json()
    assert updated["preferences"]["textSize"] == 20
    assert updated["preferences"]["hideReadMode"] is True
    assert client.put("/api/preferences", json={"textSize": "huge"}).status_code == 400

    assert client.post("/api/preferences/read", json={"articleId": "abc", "topics": ["space"]}).json()["readCount"] == 1
    assert client.post("/api/preferences/read", json={}).status_code == 400
    body = client.post("/api/preferences/not-interested", json={"topics": ["gossip"]}).json()
    assert body["notInterestedCount"] == 1

    stats = client.get("/api/preferences/stats").json()["stats"]
    assert stats == {
        "readCount": 1,
        "topInterested": [{"word": "space", "count": 1}],
        "topNotInterested": [{"word": "gossip", "count": 1}],
    }

    cleared = client.delete("/api/preferences").json()["preferences"]
    assert cleared["readArticles"] == []
    assert cleared["textSize"] == 16
