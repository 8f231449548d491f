from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

from news_curator.processing.types import LogFunc
from news_curator.utils import normalize_url

T = TypeVar("T", bound=Mapping[str, Any])


def is_known(url: Any, known_urls: set[str]) -> bool:
    key = normalize_url(url)
    return bool(key) and key in known_urls


def filter_fresh_articles(
    items: Iterable[T],
    known_urls: set[str],
    *,
    logger: LogFunc | None = None,
) -> list[T]:
    """Drop items already in the ledger, and repeats of the same URL within the batch.

    Items whose URL normalizes to "" are kept; they cannot collide with anything.
    """
    log = logger or (lambda _msg: None)
    seen: set[str] = set()
    fresh: list[T] = []
    for item in items:
        key = normalize_url(item.get("articleUrl"))
        if is_known(key, known_urls):
            log(f"Dedupe hit; skipping already-posted article: {item.get('articleTitle') or item.get('articleUrl')}")
            continue
        if key and key in seen:
            log(f"Duplicate within batch; skipping: {item.get('articleUrl')}")
            continue
        if key:
            seen.add(key)
        fresh.append(item)
    return fresh
