from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULT_USER_AGENTS: Tuple[str, ...] = (
    # Chrome 122 (Windows)
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0 Safari/537.36",
    # Chrome 121 (macOS)
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36",
    # Safari 17 (macOS)
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_6_4) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
)

FEED_ACCEPT = "application/rss+xml, application/xml;q=0.9, */*;q=0.8"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


@dataclass(frozen=True)
class ArticleFetcherConfig:
    timeout_sec: int = _env_int("ARTICLE_FETCH_TIMEOUT_SEC", 10)
    max_chars: int = _env_int("ARTICLE_FETCH_MAX_CHARS", 20000)
    min_text_chars: int = _env_int("ARTICLE_FETCH_TEXT_MIN_CHARS", 1)
    access_denied_statuses: Tuple[int, ...] = (401, 403)
    accept_language: str = "en-US,en;q=0.9"
    user_agents: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_USER_AGENTS)
