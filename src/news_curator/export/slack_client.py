from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, Sequence

import requests

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"
MAX_RETRY_WAIT_SEC = 60.0


class SlackApiError(Exception):
    def __init__(self, method: str, error: str, messages: Sequence[str] = (), status: int = 0) -> None:
        self.method = method
        self.error = error
        self.messages = list(messages)
        self.status = status
        detail = f" ({'; '.join(self.messages)})" if self.messages else ""
        super().__init__(f"{method} failed: {error}{detail}")

    @property
    def detail(self) -> str:
        return " ".join([self.error, *self.messages])


class SlackClient:
    """Minimal Slack Web API client over requests.

    Rate-limited calls (HTTP 429) are retried up to ``max_retries`` times,
    waiting for ``Retry-After`` when Slack sends it and falling back to
    exponential backoff otherwise. Without an injected ``session`` every
    thread gets its own ``requests.Session``.
    """

    def __init__(
        self,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
        timeout_sec: int = 15,
        api_base: str = SLACK_API_BASE,
        max_retries: int = 2,
        retry_backoff_sec: float = 1.0,
        sleep_func: Callable[[float], None] = time.sleep,
    ) -> None:
        self._token = token
        self._shared_session = session
        self._session_factory = session_factory
        self._local = threading.local()
        self._timeout_sec = timeout_sec
        self._api_base = api_base.rstrip("/")
        self._max_retries = max_retries
        self._retry_backoff_sec = retry_backoff_sec
        self._sleep = sleep_func

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
        return session

    def _retry_delay(self, retry_after: str, attempt: int) -> float:
        try:
            delay = float(retry_after)
        except ValueError:
            delay = self._retry_backoff_sec * (2 ** (attempt - 1))
        return min(max(delay, 0.0), MAX_RETRY_WAIT_SEC)

    def call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        max_attempts = max(1, self._max_retries + 1)
        for attempt in range(1, max_attempts + 1):
            try:
                resp = self._session().post(
                    f"{self._api_base}/{method}",
                    headers={
                        "Authorization": f"Bearer {self._token}",
                        "Content-Type": "application/json; charset=utf-8",
                    },
                    json=payload,
                    timeout=self._timeout_sec,
                )
            except requests.RequestException as e:
                raise SlackApiError(method, f"request_error:{type(e).__name__}: {e}") from e

            if resp.status_code != 429:
                break
            retry_after = str(resp.headers.get("Retry-After", "") or "").strip()
            if attempt >= max_attempts:
                raise SlackApiError(method, "ratelimited", [f"retry_after={retry_after}"] if retry_after else [], 429)
            delay = self._retry_delay(retry_after, attempt)
            logger.warning("%s rate limited; retrying in %.1fs (%s/%s)", method, delay, attempt, self._max_retries)
            self._sleep(delay)

        try:
            data = resp.json()
        except ValueError as e:
            raise SlackApiError(method, f"http_{resp.status_code}", status=resp.status_code) from e
        if not isinstance(data, dict) or not data.get("ok"):
            data = data if isinstance(data, dict) else {}
            metadata = data.get("response_metadata") or {}
            raise SlackApiError(
                method,
                str(data.get("error") or "unknown_error"),
                [str(m) for m in metadata.get("messages") or []],
                resp.status_code,
            )
        return data

    def post_message(
        self,
        channel: str,
        *,
        text: str,
        blocks: Optional[list[dict[str, Any]]] = None,
        thread_ts: Optional[str] = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "channel": channel,
            "text": text,
            "unfurl_links": False,
            "unfurl_media": False,
        }
        if blocks is not None:
            payload["blocks"] = blocks
        if thread_ts:
            payload["thread_ts"] = thread_ts
        return self.call("chat.postMessage", payload)

    def add_reaction(self, channel: str, timestamp: str, name: str) -> dict[str, Any]:
        return self.call("reactions.add", {"channel": channel, "timestamp": timestamp, "name": name})
