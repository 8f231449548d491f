from __future__ import annotations

import json
import re
from typing import Any, Callable, Sequence

from news_curator.core.constants import MAX_INSIGHTS, SCORE_FIELDS, SELECTION_WRAPPER_KEYS
from news_curator.models import Article, ScoredSelection
from news_curator.processing.prompts.selection_prompt import build_selection_prompt
from news_curator.processing.types import LogFunc
from news_curator.utils import strip_zero_width

_FENCE_RE = re.compile(r"```(?:json)?", flags=re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

_OPTIONAL_TEXT_FIELDS = (
    "articlePublisher",
    "articlePublishedDate",
    "articleImageUrl",
    "articleImageCaption",
    "articleImageCredit",
    "articleImageLicense",
    "articleImageLicenseUrl",
    "keyTakeaway",
    "whyItMatters",
    "whyItMattersFor1000heads",
)


class SelectionParseError(Exception):
    """The ranking response held no usable selection."""


def prepare_articles_for_ranking(articles: Sequence[Article], max_chars: int = 3000) -> list[dict[str, Any]]:
    prepared: list[dict[str, Any]] = []
    for article in articles:
        item = dict(article)
        content = item.get("articleContent") or ""
        if max_chars and len(content) > max_chars:
            item["articleContent"] = content[:max_chars]
        prepared.append(item)
    return prepared


def parse_json_payload(text: str) -> Any:
    # 문자열에서 JSON 배열/객체를 파싱(직접 파싱 실패 시 괄호 블록 탐색)
    if not text:
        return None
    raw = _FENCE_RE.sub("", text).replace("```", "").strip()

    def _try_load(payload: str) -> Any:
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return None

    parsed = _try_load(raw)
    if parsed is not None:
        return parsed

    for opener, closer in (("[", "]"), ("{", "}")):
        start = raw.find(opener)
        end = raw.rfind(closer)
        if start == -1 or end <= start:
            continue
        block = raw[start : end + 1]
        parsed = _try_load(block)
        if parsed is None:
            parsed = _try_load(_TRAILING_COMMA_RE.sub(r"\1", block))
        if parsed is not None:
            return parsed
    return None


def decode_selection_entries(payload: Any) -> list[Any]:
    """Accepted shapes: a bare array, an object wrapping the array, or a single selection object."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in SELECTION_WRAPPER_KEYS:
            wrapped = payload.get(key)
            if isinstance(wrapped, list):
                return wrapped
            if isinstance(wrapped, dict) and "articleUrl" in wrapped:
                return [wrapped]
        if "articleUrl" in payload:
            return [payload]
    return []


def coerce_score(value: Any) -> float | int | str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    match = re.search(r"[-+]?\d+(?:\.\d+)?", raw)
    if not match:
        return raw
    number = float(match.group(0))
    return int(number) if number.is_integer() else number


def _clean_insights(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [line.lstrip("•-* ").strip() for line in value.splitlines()]
    if not isinstance(value, list):
        return []
    out = [str(v).strip() for v in value if v is not None and str(v).strip()]
    return out[:MAX_INSIGHTS]


def normalize_selection(entry: Any) -> ScoredSelection | None:
    if not isinstance(entry, dict):
        return None
    url = strip_zero_width(str(entry.get("articleUrl") or "")).strip()
    title = strip_zero_width(str(entry.get("articleTitle") or "")).strip()
    insights = _clean_insights(entry.get("insights"))
    if not url or not title or not insights:
        return None
    selection: dict[str, Any] = dict(entry)
    selection["articleUrl"] = url
    selection["articleTitle"] = title
    for key in _OPTIONAL_TEXT_FIELDS:
        value = selection.get(key)
        selection[key] = str(value).strip() if value is not None and str(value).strip() else None
    for key in SCORE_FIELDS:
        selection[key] = coerce_score(selection.get(key))
    selection["insights"] = insights
    return selection  # type: ignore[return-value]


def parse_selection_response(text: str, *, max_selections: int | None = 1) -> list[ScoredSelection]:
    payload = parse_json_payload(text)
    if payload is None:
        snippet = re.sub(r"\s+", " ", text or "")[:160]
        raise SelectionParseError(f"ranking response is not JSON: {snippet!r}")
    selections = [s for s in (normalize_selection(e) for e in decode_selection_entries(payload)) if s]
    if not selections:
        raise SelectionParseError("ranking response has no usable selection")
    if max_selections:
        selections = selections[:max_selections]
    return selections


class SelectionRequestBuilder:
    def __init__(
        self,
        *,
        generate_func: Callable[[str], str],
        logger: LogFunc,
        content_max_chars: int = 3000,
        lookback_days: int = 60,
        max_selections: int = 1,
    ) -> None:
        self._generate = generate_func
        self._log = logger
        self._content_max_chars = content_max_chars
        self._lookback_days = lookback_days
        self._max_selections = max_selections

    def build_request(self, articles: Sequence[Article]) -> str:
        prepared = prepare_articles_for_ranking(articles, self._content_max_chars)
        articles_json = json.dumps(prepared, ensure_ascii=False, indent=2)
        return build_selection_prompt(articles_json, lookback_days=self._lookback_days)

    def select(self, articles: Sequence[Article]) -> list[ScoredSelection]:
        """Round-trip the candidates through the ranking model.

        Raises SelectionParseError when the reply has no usable selection.
        """
        prompt = self.build_request(articles)
        self._log(f"Ranking {len(articles)} candidates")
        raw = self._generate(prompt)
        self._log("Ranking response received")
        return parse_selection_response(raw, max_selections=self._max_selections)
