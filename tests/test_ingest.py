from __future__ import annotations

import datetime

import pytest

import news_curator.processing.ingest as ingest_mod
from news_curator.processing.ingest import FeedIngestor, FeedParseError, fetch_feed, per_feed_cap
from news_curator.scrapers.article_fetcher import AccessDeniedError, ArticleFetchError, ExtractedArticle

NOW = datetime.datetime(2024, 3, 10, 12, 0, tzinfo=datetime.timezone.utc)
RECENT = (2024, 3, 9, 8, 0, 0, 5, 69, 0)
STALE = (2023, 11, 1, 8, 0, 0, 2, 305, 0)


def _entry(link: str | None, *, title: str = "Story", published_parsed: tuple | None = RECENT) -> dict:
    entry: dict = {"title": title}
    if link is not None:
        entry["link"] = link
    if published_parsed is not None:
        entry["published_parsed"] = published_parsed
    return entry


def _feed(title: str, entries: list[dict]) -> dict:
    return {"feed": {"title": title}, "entries": entries}


def _extracted(url: str, *, text: str = "Body text for the article.", published: str = "") -> ExtractedArticle:
    return ExtractedArticle(url, url, 200, "trafilatura", text, published=published)


class _Extractor:
    def __init__(self, *, denied: set[str] | None = None, failing: set[str] | None = None) -> None:
        self.denied = denied or set()
        self.failing = failing or set()
        self.calls: list[str] = []

    def __call__(self, url: str) -> ExtractedArticle:
        self.calls.append(url)
        if url in self.denied:
            raise AccessDeniedError(url, "access denied", status=403)
        if url in self.failing:
            raise ArticleFetchError(url, "http_error", status=500)
        return _extracted(url)


def _build(feeds: dict[str, dict], extractor, fetched: list[str] | None = None) -> FeedIngestor:
    def _fetch(url: str) -> dict:
        if fetched is not None:
            fetched.append(url)
        if url not in feeds:
            raise FeedParseError("HTTP 404")
        return feeds[url]

    return FeedIngestor(
        feed_fetcher=_fetch,
        extract_func=extractor,
        logger=lambda _msg: None,
        lookback_days=60,
        now_provider=lambda: NOW,
        shuffle_func=lambda _values: None,
    )


def test_per_feed_cap() -> None:
    assert per_feed_cap(12, 5) == 3
    assert per_feed_cap(2, 10) == 1
    assert per_feed_cap(None, 5) is None
    assert per_feed_cap(10, 0) is None


def test_per_source_cap_limits_each_feed() -> None:
    feeds = {
        f"https://feed{i}.example/rss": _feed(
            f"Feed {i}", [_entry(f"https://feed{i}.example/a{j}") for j in range(10)]
        )
        for i in range(5)
    }
    ingestor = _build(feeds, _Extractor())

    articles = ingestor.fetch_feeds(list(feeds), max_articles=12)

    assert len(articles) == 12
    for i in range(5):
        from_feed = [a for a in articles if a["articleUrl"].startswith(f"https://feed{i}.")]
        assert len(from_feed) <= 3


def test_access_denied_blocks_rest_of_source() -> None:
    source = "https://blocked.example/rss"
    links = [f"https://blocked.example/a{j}" for j in range(5)]
    extractor = _Extractor(denied={links[1]})
    ingestor = _build({source: _feed("Blocked", [_entry(u) for u in links])}, extractor)

    articles = ingestor.fetch_feeds([source])

    assert extractor.calls == links[:2]
    assert [a["articleUrl"] for a in articles] == links[:1]
    assert ingestor.blocked_sources == {source}


def test_global_cap_stops_before_remaining_feeds() -> None:
    feeds = {
        f"https://feed{i}.example/rss": _feed(
            f"Feed {i}", [_entry(f"https://feed{i}.example/a{j}") for j in range(5)]
        )
        for i in range(3)
    }
    fetched: list[str] = []
    ingestor = _build(feeds, _Extractor(), fetched)

    articles = ingestor.fetch_feeds(list(feeds), max_articles=2)

    assert len(articles) == 2
    assert "https://feed2.example/rss" not in fetched


def test_global_cap_stops_midway_through_a_source() -> None:
    feeds = {
        "https://a.example/rss": _feed("A", [_entry(f"https://a.example/{j}") for j in range(5)]),
        "https://b.example/rss": _feed("B", [_entry(f"https://b.example/{j}") for j in range(5)]),
    }
    extractor = _Extractor()
    ingestor = _build(feeds, extractor)

    articles = ingestor.fetch_feeds(list(feeds), max_articles=3)

    assert [a["articleUrl"] for a in articles] == [
        "https://a.example/0",
        "https://a.example/1",
        "https://b.example/0",
    ]
    assert "https://b.example/1" not in extractor.calls
    assert len(extractor.calls) == 3


def test_end_to_end_three_feeds_with_skip_and_block() -> None:
    feeds = {
        "https://a.example/rss": _feed("A", [_entry(None, title="No link"), _entry("https://a.example/2")]),
        "https://b.example/rss": _feed("B", [_entry("https://b.example/1"), _entry("https://b.example/2")]),
        "https://c.example/rss": _feed("C", [_entry("https://c.example/1"), _entry("https://c.example/2")]),
    }
    extractor = _Extractor(denied={"https://b.example/1"})
    ingestor = _build(feeds, extractor)

    articles = ingestor.fetch_feeds(list(feeds), max_articles=4)

    urls = [a["articleUrl"] for a in articles]
    assert len(urls) <= 4
    assert urls == ["https://a.example/2", "https://c.example/1", "https://c.example/2"]
    assert "https://b.example/2" not in extractor.calls
    assert ingestor.blocked_sources == {"https://b.example/rss"}
    assert articles[0]["articlePublisher"] == "A"
    assert articles[0]["articlePublishedDate"] == "2024-03-09T08:00:00Z"


def test_unreachable_feed_and_failed_item_are_skipped() -> None:
    feeds = {
        "https://ok.example/rss": _feed("OK", [_entry("https://ok.example/bad"), _entry("https://ok.example/good")]),
    }
    extractor = _Extractor(failing={"https://ok.example/bad"})
    ingestor = _build(feeds, extractor)

    articles = ingestor.fetch_feeds(["https://missing.example/rss", "https://ok.example/rss"])

    assert [a["articleUrl"] for a in articles] == ["https://ok.example/good"]
    assert ingestor.blocked_sources == set()


def test_stale_entry_is_skipped_without_extraction() -> None:
    feeds = {"https://f.example/rss": _feed("F", [_entry("https://f.example/old", published_parsed=STALE)])}
    extractor = _Extractor()
    ingestor = _build(feeds, extractor)

    assert ingestor.fetch_feeds(list(feeds)) == []
    assert extractor.calls == []


def test_dateless_entry_uses_extracted_date() -> None:
    feeds = {
        "https://f.example/rss": _feed(
            "F",
            [
                _entry("https://f.example/undated", published_parsed=None),
                _entry("https://f.example/old-page", published_parsed=None),
            ],
        )
    }

    def _extract(url: str) -> ExtractedArticle:
        if url.endswith("old-page"):
            return _extracted(url, published="2023-10-01")
        return _extracted(url)

    ingestor = _build(feeds, _extract)
    articles = ingestor.fetch_feeds(list(feeds))

    assert [a["articleUrl"] for a in articles] == ["https://f.example/undated"]
    assert articles[0]["articlePublishedDate"] is None


def test_empty_extraction_is_dropped() -> None:
    feeds = {"https://f.example/rss": _feed("F", [_entry("https://f.example/empty")])}
    ingestor = _build(feeds, lambda url: _extracted(url, text="   "))

    assert ingestor.fetch_feeds(list(feeds)) == []


def test_is_too_old_passes_unknown_dates() -> None:
    ingestor = _build({}, _Extractor())
    assert ingestor.is_too_old(None, NOW) is False
    assert ingestor.is_too_old("sometime last week", NOW) is False
    assert ingestor.is_too_old("2024-01-01T00:00:00Z", NOW) is True
    assert ingestor.is_too_old("2024-03-01T00:00:00Z", NOW) is False


def test_filter_recent_english(monkeypatch) -> None:
    monkeypatch.setattr(ingest_mod, "is_english", lambda text: "bonjour" not in text)
    ingestor = _build({}, _Extractor())
    articles = [
        {"articleUrl": "https://x/1", "articleContent": "hello", "articlePublishedDate": "2024-03-05T00:00:00Z"},
        {"articleUrl": "https://x/2", "articleContent": "bonjour", "articlePublishedDate": "2024-03-05T00:00:00Z"},
        {"articleUrl": "https://x/3", "articleContent": "hello", "articlePublishedDate": "2023-01-01T00:00:00Z"},
        {"articleUrl": "https://x/4", "articleContent": "hello", "articlePublishedDate": None},
    ]

    kept = ingestor.filter_recent_english(articles)
    assert [a["articleUrl"] for a in kept] == ["https://x/1", "https://x/4"]

    kept_any_language = ingestor.filter_recent_english(articles, require_english=False)
    assert [a["articleUrl"] for a in kept_any_language] == ["https://x/1", "https://x/2", "https://x/4"]


class _Response:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content


class _Session:
    def __init__(self, response: _Response) -> None:
        self.response = response
        self.calls: list[dict] = []

    def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return self.response


RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Example Feed</title>
<item><title>First</title><link>https://example.com/first</link>
<pubDate>Sat, 09 Mar 2024 08:00:00 +0000</pubDate></item>
</channel></rss>"""


def test_fetch_feed_parses_rss_with_timeout() -> None:
    session = _Session(_Response(200, RSS))

    parsed = fetch_feed("https://example.com/rss", timeout_sec=7, session=session)

    assert parsed["feed"]["title"] == "Example Feed"
    assert parsed["entries"][0]["link"] == "https://example.com/first"
    assert session.calls[0]["timeout"] == 7


def test_fetch_feed_raises_on_http_error() -> None:
    with pytest.raises(FeedParseError):
        fetch_feed("https://example.com/rss", session=_Session(_Response(503)))
