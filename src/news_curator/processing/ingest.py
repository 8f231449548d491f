from __future__ import annotations

import datetime
import math
import random
from typing import Any, Callable, Sequence

import feedparser
import requests

from news_curator.models import Article
from news_curator.processing.types import ExtractFunc, FeedFetchFunc, LogFunc, ShuffleFunc
from news_curator.scrapers.article_fetcher import AccessDeniedError, ExtractedArticle
from news_curator.scrapers.article_fetcher_config import DEFAULT_USER_AGENTS, FEED_ACCEPT
from news_curator.utils import (
    clean_text,
    days_between,
    is_english,
    parse_datetime_utc,
    struct_time_to_iso,
)


class FeedParseError(Exception):
    """A feed source could not be fetched or parsed."""


def per_feed_cap(max_articles: int | None, num_feeds: int) -> int | None:
    # 피드당 상한: ceil(전체 한도 / 피드 수), 최소 1
    if not max_articles or num_feeds <= 0:
        return None
    return max(1, math.ceil(max_articles / num_feeds))


def fetch_feed(
    url: str,
    *,
    timeout_sec: int = 10,
    session: requests.Session | None = None,
) -> Any:
    """Download a feed with a fixed timeout and parse it with feedparser."""
    http = session or requests
    try:
        resp = http.get(
            url,
            headers={"User-Agent": DEFAULT_USER_AGENTS[0], "Accept": FEED_ACCEPT},
            timeout=timeout_sec,
        )
    except requests.RequestException as e:
        raise FeedParseError(f"{type(e).__name__}: {e}") from e
    if resp.status_code >= 400:
        raise FeedParseError(f"HTTP {resp.status_code}")
    parsed = feedparser.parse(resp.content)
    if parsed.get("bozo") and not parsed.get("entries"):
        reason = parsed.get("bozo_exception")
        raise FeedParseError(f"malformed feed: {reason}")
    return parsed


def _entry_value(entry: Any, key: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(key)
    return getattr(entry, key, None)


def _entry_published_iso(entry: Any) -> str | None:
    for key in ("published_parsed", "updated_parsed"):
        iso = struct_time_to_iso(_entry_value(entry, key))
        if iso:
            return iso
    for key in ("published", "updated"):
        dt = parse_datetime_utc(_entry_value(entry, key))
        if dt:
            return dt.isoformat().replace("+00:00", "Z")
    return None


def _entry_image(entry: Any) -> str | None:
    for key in ("media_content", "media_thumbnail"):
        media = _entry_value(entry, key) or []
        for m in media:
            url = m.get("url") if isinstance(m, dict) else None
            if url:
                return url
    for enc in _entry_value(entry, "enclosures") or []:
        if not isinstance(enc, dict):
            continue
        if str(enc.get("type") or "").startswith("image/") and enc.get("href"):
            return enc["href"]
    return None


class FeedIngestor:
    def __init__(
        self,
        *,
        feed_fetcher: FeedFetchFunc,
        extract_func: ExtractFunc,
        logger: LogFunc,
        lookback_days: int = 60,
        now_provider: Callable[[], datetime.datetime] | None = None,
        shuffle_func: ShuffleFunc | None = None,
    ) -> None:
        self._feed_fetcher = feed_fetcher
        self._extract = extract_func
        self._log = logger
        self._lookback_days = lookback_days
        self._now_provider = now_provider or (lambda: datetime.datetime.now(datetime.timezone.utc))
        self._shuffle = shuffle_func or random.shuffle
        self.blocked_sources: set[str] = set()

    def _shuffled(self, values: Sequence[Any]) -> list[Any]:
        out = list(values)
        self._shuffle(out)
        return out

    def is_too_old(self, published: str | None, now: datetime.datetime | None = None) -> bool:
        # 날짜가 없거나 파싱 불가하면 나이를 알 수 없으므로 통과시킨다.
        published_dt = parse_datetime_utc(published)
        if published_dt is None:
            return False
        now = now or self._now_provider()
        return days_between(published_dt, now) > self._lookback_days

    def fetch_feeds(self, feed_urls: Sequence[str], max_articles: int | None = None) -> list[Article]:
        """Collect extracted articles from every feed, in random order.

        Stops as soon as ``max_articles`` have been collected. A source whose
        article pages answer 401/403 is abandoned for the rest of the run.
        """
        collected: list[Article] = []
        now = self._now_provider()
        self.blocked_sources = set()
        feeds = self._shuffled(feed_urls)
        feed_cap = per_feed_cap(max_articles, len(feeds))
        self._log(f"Feed ingestion start: {len(feeds)} feeds, max={max_articles}, per_feed={feed_cap}")

        for feed_idx, url in enumerate(feeds, start=1):
            try:
                parsed = self._feed_fetcher(url)
            except Exception as e:
                self._log(f"⚠️ Error parsing feed {url}: {e}")
                continue

            feed_meta = parsed.get("feed") or {}
            feed_title = clean_text(feed_meta.get("title") or "")
            entries = self._shuffled(parsed.get("entries") or [])
            feed_kept = 0
            feed_skipped = 0

            for entry in entries:
                link = (_entry_value(entry, "link") or "").strip()
                if not link:
                    feed_skipped += 1
                    continue

                published = _entry_published_iso(entry)
                if published and self.is_too_old(published, now):
                    feed_skipped += 1
                    continue

                try:
                    extraction = self._extract(link)
                except AccessDeniedError as e:
                    self.blocked_sources.add(url)
                    self._log(f"⛔ Access denied by {url} ({e}); skipping the rest of this source")
                    break
                except Exception as e:
                    self._log(f"❌ Failed to extract {link}: {e}")
                    feed_skipped += 1
                    continue

                article = self._build_article(entry, link, feed_title, published, extraction)
                if article is None:
                    feed_skipped += 1
                    continue
                if not published and self.is_too_old(article["articlePublishedDate"], now):
                    feed_skipped += 1
                    continue

                collected.append(article)
                feed_kept += 1
                self._log(f"Article ingested: {article['articleTitle']} - {link}")

                if max_articles and len(collected) >= max_articles:
                    self._log(f"Reached max articles ({max_articles}); stopping ingestion")
                    return collected
                if feed_cap and feed_kept >= feed_cap:
                    break

            self._log(
                f"Feed done ({feed_idx}/{len(feeds)}): {feed_title or url} "
                f"(kept {feed_kept}, skipped {feed_skipped}, total {len(collected)})"
            )

        self._log(f"Feed ingestion done: {len(collected)} articles")
        return collected

    @staticmethod
    def _build_article(
        entry: Any,
        link: str,
        feed_title: str,
        published: str | None,
        extraction: ExtractedArticle | None,
    ) -> Article | None:
        if extraction is None or not (extraction.text or "").strip():
            return None
        title = clean_text(_entry_value(entry, "title") or "") or clean_text(extraction.title)
        author = extraction.author or clean_text(_entry_value(entry, "author") or "") or None
        return {
            "articleTitle": title,
            "articleUrl": link,
            "articlePublisher": feed_title or extraction.publisher,
            "articlePublishedDate": published or extraction.published or None,
            "articleAuthor": author,
            "articleContent": extraction.text.strip(),
            "articleImageUrl": extraction.image or _entry_image(entry) or None,
        }

    def filter_recent_english(self, articles: Sequence[Article], *, require_english: bool = True) -> list[Article]:
        now = self._now_provider()
        kept: list[Article] = []
        for article in articles:
            if self.is_too_old(article.get("articlePublishedDate"), now):
                continue
            if require_english and not is_english(article.get("articleContent") or ""):
                self._log(f"Non-English article dropped: {article.get('articleTitle') or article.get('articleUrl')}")
                continue
            kept.append(article)
        return kept
