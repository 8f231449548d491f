from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence
from urllib.parse import urlparse

from news_curator.core.constants import (
    DEFAULT_REACTIONS,
    EMPTY_PLACEHOLDER,
    FEEDBACK_THREAD_TEXT,
    IMAGE_URL_SCHEMES,
    SLACK_FIELD_MAX_CHARS,
    SLACK_HEADER_MAX_CHARS,
    SLACK_SECTION_MAX_CHARS,
    UNSUPPORTED_IMAGE_SUFFIXES,
)
from news_curator.export.slack_client import SlackApiError, SlackClient
from news_curator.models import DeliveryResult, ScoredSelection
from news_curator.utils import parse_datetime_utc, strip_zero_width

logger = logging.getLogger(__name__)

_IMAGE_BLOCK_ERRORS = {"invalid_blocks", "invalid_blocks_format", "invalid_arguments"}


def _text(value: Any, fallback: str = EMPTY_PLACEHOLDER) -> str:
    if value is None:
        return fallback
    s = strip_zero_width(str(value)).strip()
    return s or fallback


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def should_embed_image(url: Optional[str]) -> bool:
    """Only http(s) URLs that do not point at a vector image."""
    if not url:
        return False
    candidate = url.strip()
    if not candidate.lower().startswith(IMAGE_URL_SCHEMES):
        return False
    path = urlparse(candidate).path.lower()
    return not path.endswith(UNSUPPORTED_IMAGE_SUFFIXES)


def format_slack_date(iso: Optional[str]) -> str:
    dt = parse_datetime_utc(iso)
    if dt is None:
        return EMPTY_PLACEHOLDER
    ts = int(dt.timestamp())
    return f"<!date^{ts}^{{date_short}} {{time}}|{iso}>"


def is_image_rejection(err: SlackApiError) -> bool:
    # Slack은 이미지 다운로드 실패를 invalid_blocks + image 관련 메시지로 돌려준다.
    detail = err.detail.lower()
    if "image" in err.error.lower():
        return True
    return err.error in _IMAGE_BLOCK_ERRORS and "image" in detail


def build_message_blocks(selection: ScoredSelection, *, include_image: bool = True) -> tuple[str, list[dict[str, Any]]]:
    """Fallback text plus Block Kit blocks for one selection."""
    url = _text(selection.get("articleUrl"), "")
    title = _truncate(_text(selection.get("articleTitle"), "Untitled"), SLACK_HEADER_MAX_CHARS)
    publisher = _text(selection.get("articlePublisher"), "Unknown")
    key_takeaway = _text(selection.get("keyTakeaway"))
    why_it_matters = _text(selection.get("whyItMatters"))
    why_for_us = _text(selection.get("whyItMattersFor1000heads"))
    insights = [i for i in (_text(x, "") for x in selection.get("insights") or []) if i]
    insights_text = "\n".join(f"• {i}" for i in insights) if insights else EMPTY_PLACEHOLDER
    image_url = _text(selection.get("articleImageUrl"), "")

    byline = f"by *{publisher}*"
    if url:
        byline += f" | <{url}|Read full article>"

    blocks: list[dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": title}},
        {"type": "context", "elements": [{"type": "mrkdwn", "text": byline}]},
    ]
    if include_image and should_embed_image(image_url):
        blocks.append({"type": "image", "image_url": image_url, "alt_text": "Article image"})
    blocks.extend(
        [
            {
                "type": "section",
                "fields": [
                    {
                        "type": "mrkdwn",
                        "text": _truncate(f"*Key Takeaway:*\n{key_takeaway}", SLACK_FIELD_MAX_CHARS),
                    },
                    {
                        "type": "mrkdwn",
                        "text": _truncate(f"*Why it matters:*\n{why_it_matters}", SLACK_FIELD_MAX_CHARS),
                    },
                ],
            },
            {"type": "divider"},
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": _truncate(f"*Insights:*\n{insights_text}", SLACK_SECTION_MAX_CHARS)},
            },
            {"type": "divider"},
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": _truncate(f"*Why it matters for 1000heads:*\n{why_for_us}", SLACK_SECTION_MAX_CHARS),
                },
            },
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": f"date published: {format_slack_date(selection.get('articlePublishedDate'))}",
                    }
                ],
            },
        ]
    )
    return title, blocks


class DeliveryEngine:
    def __init__(
        self,
        *,
        client: SlackClient,
        channel_id: str,
        reactions: Sequence[str] = DEFAULT_REACTIONS,
        thread_text: str = FEEDBACK_THREAD_TEXT,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._channel_id = channel_id
        self._reactions = tuple(reactions)
        self._thread_text = thread_text
        self._log = log or logger

    def _post(self, selection: ScoredSelection) -> dict[str, Any]:
        text, blocks = build_message_blocks(selection)
        try:
            return self._client.post_message(self._channel_id, text=text, blocks=blocks)
        except SlackApiError as e:
            has_image = any(b.get("type") == "image" for b in blocks)
            if not has_image or not is_image_rejection(e):
                raise
            self._log.warning("Image block rejected (%s); retrying without image", e)
        text, blocks = build_message_blocks(selection, include_image=False)
        return self._client.post_message(self._channel_id, text=text, blocks=blocks)

    def add_reactions(self, channel: str, ts: str) -> list[str]:
        """Attach the preset reactions concurrently; returns the names that failed."""
        if not self._reactions:
            return []
        failed: list[str] = []
        with ThreadPoolExecutor(max_workers=len(self._reactions)) as executor:
            futures = {
                executor.submit(self._client.add_reaction, channel, ts, name): name for name in self._reactions
            }
            for future, name in futures.items():
                try:
                    future.result()
                except Exception as e:
                    self._log.warning("Reaction add failed (%s): %s", name, e)
                    failed.append(name)
        return failed

    def post_feedback_thread(self, channel: str, ts: str) -> bool:
        try:
            self._client.post_message(channel, text=self._thread_text, thread_ts=ts)
        except Exception as e:
            self._log.warning("Thread post failed: %s", e)
            return False
        return True

    def deliver(self, selection: ScoredSelection) -> DeliveryResult:
        """Post one selection, then add reactions and the feedback thread (best-effort).

        Errors from the primary post propagate, except an image rejection,
        which is retried once without the image block.
        """
        res = self._post(selection)
        ts = str(res.get("ts") or "")
        channel = str(res.get("channel") or self._channel_id)
        self._log.info("Message sent: %s", ts)
        self.add_reactions(channel, ts)
        self.post_feedback_thread(channel, ts)
        return DeliveryResult(ts=ts, channel=channel)
