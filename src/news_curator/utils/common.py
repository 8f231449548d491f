from __future__ import annotations

import datetime
import email.utils
import html
import re
import time
from typing import Any

from bs4 import BeautifulSoup
from langdetect import DetectorFactory, LangDetectException, detect

_WS_RE = re.compile(r"\s+")  # 연속 공백 축약
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\u2060\ufeff]")  # LLM 출력에 자주 섞이는 zero-width 문자
_BLANK_LINES_RE = re.compile(r"\n{3,}")

# langdetect 결과 고정
DetectorFactory.seed = 0


def strip_zero_width(value: str) -> str:
    return _ZERO_WIDTH_RE.sub("", value or "")


def normalize_url(url: Any) -> str:
    """Canonical dedupe key for an article URL.

    Zero-width spaces (U+200B) are removed, surrounding whitespace trimmed,
    trailing slashes dropped and the whole string lower-cased. Other
    zero-width characters are part of the key. Empty or
    whitespace-only input yields "". Applying it twice gives the same result.
    """
    if url is None:
        return ""
    s = str(url).replace("\u200b", "")
    while True:
        trimmed = s.strip()
        if trimmed.endswith("/"):
            trimmed = trimmed[:-1]
        if trimmed == s:
            break
        s = trimmed
    return s.lower()


def clean_text(s: str) -> str:
    """HTML 엔티티/태그를 제거하고 공백을 정리한 한 줄 텍스트로 정규화."""
    if not s:
        return ""
    s = html.unescape(s)
    s = s.replace("\u00a0", " ")
    s = re.sub(r"<[^>]+>", "", s)
    s = _WS_RE.sub(" ", s).strip()
    return s


def clean_text_ws(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").strip())


def html_to_text(value: str) -> str:
    """Plain text from an HTML fragment, keeping paragraph breaks."""
    if not value:
        return ""
    soup = BeautifulSoup(value, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator="\n")
    lines = [clean_text_ws(line) for line in text.splitlines()]
    joined = "\n".join(lines).strip()
    return _BLANK_LINES_RE.sub("\n\n", joined)


def parse_datetime_utc(value: Any) -> datetime.datetime | None:
    # ISO-8601, RFC 822, 날짜만 있는 문자열 순서로 시도
    if not value:
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            dt = datetime.datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = email.utils.parsedate_to_datetime(raw)
            except (TypeError, ValueError, IndexError):
                return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def struct_time_to_iso(value: time.struct_time | None) -> str | None:
    """feedparser의 *_parsed(UTC struct_time)를 ISO-8601 문자열로 변환."""
    if not value:
        return None
    try:
        dt = datetime.datetime(*value[:6], tzinfo=datetime.timezone.utc)
    except (TypeError, ValueError):
        return None
    return dt.isoformat().replace("+00:00", "Z")


def days_between(start: datetime.datetime, end: datetime.datetime) -> int:
    """Whole days from start to end, truncated toward zero."""
    seconds = (end - start).total_seconds()
    return int(seconds / 86400)


def is_english(text: str, *, min_chars: int = 30) -> bool:
    """Return True if text is predominantly English (or too short to detect)."""
    if not text or len(text.strip()) < min_chars:
        return True
    try:
        return detect(text[:1000]) == "en"
    except LangDetectException:
        return True
