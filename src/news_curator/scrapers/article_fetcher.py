from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Optional

import requests
import trafilatura
from bs4 import BeautifulSoup

from news_curator.scrapers.article_fetcher_config import HTML_ACCEPT, ArticleFetcherConfig
from news_curator.utils import html_to_text

logger = logging.getLogger(__name__)

_TEXTUAL_CONTENT_TYPES = ("text/html", "application/xhtml+xml", "text/plain", "application/xml", "text/xml")


# -----------------------------
# Public return types / errors
# -----------------------------
@dataclass(frozen=True)
class ExtractedArticle:
    requested_url: str
    final_url: str
    status: int
    extractor: str  # "trafilatura" | "heuristic" | "none"
    text: str
    title: str = ""
    author: str = ""
    publisher: str = ""
    published: str = ""
    image: str = ""


class ArticleFetchError(Exception):
    def __init__(self, url: str, reason: str, status: int = 0) -> None:
        super().__init__(f"{reason} ({url})" if not status else f"HTTP {status} {reason} ({url})")
        self.url = url
        self.reason = reason
        self.status = status


class AccessDeniedError(ArticleFetchError):
    """The publisher refused the request (401/403); the whole source should be skipped."""


# -----------------------------
# Main fetcher
# -----------------------------
class ArticleFetcher:
    def __init__(
        self,
        config: Optional[ArticleFetcherConfig] = None,
        log: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config or ArticleFetcherConfig()
        self._log = log or logger
        self._session = session or requests.Session()

    def _make_headers(self) -> dict[str, str]:
        user_agent = random.choice(self._config.user_agents) if self._config.user_agents else "Mozilla/5.0"
        return {
            "User-Agent": user_agent,
            "Accept": HTML_ACCEPT,
            "Accept-Language": self._config.accept_language,
        }

    def fetch(self, url: str) -> ExtractedArticle:
        """Download one article page and extract its text and metadata.

        Raises AccessDeniedError for 401/403 responses and ArticleFetchError for
        any other transport or HTTP failure. A page that downloads fine but has
        no extractable body comes back with an empty ``text``.
        """
        self._log.info("fetch_start: %s", url)
        try:
            resp = self._session.get(url, headers=self._make_headers(), timeout=self._config.timeout_sec)
        except requests.RequestException as e:
            raise ArticleFetchError(url, f"request_error:{type(e).__name__}: {e}") from e

        status = resp.status_code
        final_url = resp.url or url
        if status in self._config.access_denied_statuses:
            raise AccessDeniedError(url, "access denied", status=status)
        if status >= 400:
            raise ArticleFetchError(url, "http_error", status=status)

        content_type = (resp.headers.get("content-type") or "").lower()
        if content_type and not any(t in content_type for t in _TEXTUAL_CONTENT_TYPES):
            self._log.info("fetch_skip_non_text: %s (%s)", final_url, content_type)
            return ExtractedArticle(url, final_url, status, "none", "")

        result = self.extract(url, final_url, status, resp.text or "")
        self._log.info("fetch_done: %s extractor=%s len=%s", final_url, result.extractor, len(result.text))
        return result

    def extract(self, requested_url: str, final_url: str, status: int, html: str) -> ExtractedArticle:
        meta = self._extract_with_trafilatura(final_url, html)
        text = (meta.get("text") or "").strip()
        extractor = "trafilatura"
        if len(text) < self._config.min_text_chars:
            text = self._extract_heuristic(html)
            extractor = "heuristic" if len(text) >= self._config.min_text_chars else "none"
        if extractor == "none":
            text = ""
        if self._config.max_chars and len(text) > self._config.max_chars:
            text = text[: self._config.max_chars]
        return ExtractedArticle(
            requested_url=requested_url,
            final_url=final_url,
            status=status,
            extractor=extractor,
            text=text,
            title=_str(meta.get("title")),
            author=_str(meta.get("author")),
            publisher=_str(meta.get("sitename") or meta.get("source-hostname")),
            published=_str(meta.get("date")),
            image=_str(meta.get("image")),
        )

    @staticmethod
    def _extract_with_trafilatura(url: str, html: str) -> dict[str, Any]:
        if not html:
            return {}
        extracted = trafilatura.extract(
            html,
            url=url,
            output_format="json",
            with_metadata=True,
            include_comments=False,
            include_tables=False,
        )
        if not extracted:
            return {}
        try:
            data = json.loads(extracted)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _extract_heuristic(html: str) -> str:
        # <article>가 있으면 그 안의 텍스트만 사용
        if not html:
            return ""
        soup = BeautifulSoup(html, "html.parser")
        node = soup.find("article")
        if node is None:
            return ""
        return html_to_text(str(node))


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
