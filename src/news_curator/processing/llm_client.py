from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
OPENAI_API_BASE = "https://api.openai.com/v1"
_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class LLMRequestError(Exception):
    """The ranking model could not be reached or returned nothing usable."""


def _extract_gemini_text(payload: dict[str, Any]) -> str:
    # Gemini REST 응답에서 텍스트만 추출
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict)).strip()


def _extract_openai_text(payload: dict[str, Any]) -> str:
    try:
        return str(payload["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError):
        return ""


class LLMClient:
    """Text-in/text-out wrapper around the Gemini or OpenAI REST API."""

    def __init__(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        timeout_sec: int = 120,
        max_retries: int = 2,
        retry_backoff_sec: float = 1.5,
        session: requests.Session | None = None,
        sleep_func: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._api_key = api_key
        self._model = model
        self._timeout_sec = timeout_sec
        self._max_retries = max_retries
        self._retry_backoff_sec = retry_backoff_sec
        self._session = session or requests.Session()
        self._sleep = sleep_func

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        if self._provider == "openai":
            return (
                f"{OPENAI_API_BASE}/chat/completions",
                {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"},
                {"model": self._model, "messages": [{"role": "user", "content": prompt}]},
            )
        return (
            f"{GEMINI_API_BASE}/models/{self._model}:generateContent",
            {"x-goog-api-key": self._api_key, "Content-Type": "application/json"},
            {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": 0.2, "responseMimeType": "application/json"},
            },
        )

    def _extract_text(self, payload: dict[str, Any]) -> str:
        if self._provider == "openai":
            return _extract_openai_text(payload)
        return _extract_gemini_text(payload)

    def _backoff(self, attempt: int) -> None:
        self._sleep(self._retry_backoff_sec * (2 ** (attempt - 1)))

    def generate_text(self, prompt: str) -> str:
        url, headers, body = self._build_request(prompt)
        max_attempts = max(1, self._max_retries + 1)
        last_err = ""
        logger.info("Sending prompt to %s (%s), awaiting reply", self._provider, self._model)
        for attempt in range(1, max_attempts + 1):
            try:
                resp = self._session.post(url, headers=headers, json=body, timeout=self._timeout_sec)
            except requests.RequestException as e:
                last_err = f"{type(e).__name__}: {e}"
                if attempt < max_attempts:
                    self._backoff(attempt)
                    continue
                break

            if not resp.ok:
                last_err = f"{resp.status_code} {resp.text[:300]}"
                if resp.status_code in _RETRYABLE_STATUSES and attempt < max_attempts:
                    self._backoff(attempt)
                    continue
                break

            try:
                data = resp.json()
            except ValueError:
                last_err = "response body is not JSON"
                if attempt < max_attempts:
                    self._backoff(attempt)
                    continue
                break

            text = self._extract_text(data if isinstance(data, dict) else {})
            if not text and attempt < max_attempts:
                self._backoff(attempt)
                continue
            # 빈 응답은 호출 실패가 아니라 파싱 단계에서 판정한다.
            return text

        raise LLMRequestError(f"{self._provider} call failed: {last_err}")
