from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from news_curator.core.constants import DEFAULT_REACTIONS

_repo_root = Path(__file__).resolve().parents[3]
load_dotenv(dotenv_path=_repo_root / ".env")

# ==========================================
# Feed sources (static)
# ==========================================

FEED_SOURCES: tuple[str, ...] = (
    "https://martech.org/feed",
    "https://searchengineland.com/feed",
    "https://www.socialmediaexaminer.com/feed/",
    "https://www.marketingdive.com/feeds/news",
    "http://www.marketingaiinstitute.com/blog/rss.xml",
    "https://blog.hubspot.com/marketing/rss.xml",
    "https://www.searchenginejournal.com/feed/",
    "https://www.smartinsights.com/feed/",
    "https://copyblogger.com/feed/",
    "https://www.netimperative.com/feed/",
    "https://www.adexchanger.com/feed/",
    "https://www.exchangewire.com/feed/",
    "https://martechseries.com/feed/",
    "https://customerthink.com/feed/",
    "https://www.marketingtechnews.net/feed/",
    "https://mobilemarketingmagazine.com/feed/",
    "https://influencermarketinghub.com/feed/",
    "https://www.convinceandconvert.com/feed/",
    "https://copyhackers.com/blog/feed/",
    "https://segment.com/blog/rss.xml",
    "https://www.litmus.com/blog/feed/",
    "https://www.campaignmonitor.com/blog/rss/",
    "https://vwo.com/blog/feed/",
    "https://ahrefs.com/blog/rss/",
    "https://sparktoro.com/blog/feed/",
    "https://buffer.com/resources/feed/",
    "https://sproutsocial.com/insights/feed/",
    "https://www.socialpilot.co/blog/feed",
    "https://www.agorapulse.com/blog/feed/",
    "https://planable.io/blog/feed/",
    "https://campaignbriefasia.com/feed/",
    "https://stoppress.co.nz/feed/",
    "https://iabaustralia.com.au/feed/",
    "https://mumbrella.com.au/feed",
    "https://campaignme.com/feed/",
    "https://www.communicateonline.me/feed/",
    "https://the-media-leader.com/feed/",
    "https://blog.chartmogul.com/feed/",
    "https://feeds.feedburner.com/blogspot/amDG",
    "https://www.socialmediatoday.com/feeds/news/",
    "https://restofworld.org/feed/latest",
    "https://www.itsnicethat.com/?nicefeed=",
    "https://www.creativeboom.com/feed/",
    # "https://designtaxi.com/news.rss",  # 403
    "https://www.digitalartsonline.co.uk/news/feed/",
    "https://www.adweek.com/category/creative/feed/",
    "https://stratechery.com/feed/",
    "https://fs.blog/feed/",
    "https://www.brandinginasia.com/feed/",
)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o"


def parse_list(raw: str | None) -> list[str]:
    """Comma/newline separated value -> list of non-empty items."""
    if not raw:
        return []
    parts = raw.replace("\n", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


def _env(env: Mapping[str, str], name: str, default: str = "") -> str:
    return (env.get(name) or default).strip()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(env, name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _env(env, name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env(env, name)
    if not raw:
        return default
    return raw in {"1", "true", "True", "yes", "YES"}


@dataclass(frozen=True)
class BotConfig:
    slack_token: str = ""
    slack_channel_id: str = ""
    error_recipients: tuple[str, ...] = ()
    reactions: tuple[str, ...] = DEFAULT_REACTIONS
    llm_provider: str = "gemini"
    llm_api_key: str = ""
    llm_model: str = DEFAULT_GEMINI_MODEL
    llm_timeout_sec: int = 120
    llm_max_retries: int = 2
    sheets_spreadsheet_id: str = ""
    sheets_worksheet_name: str = "Articles"
    google_credentials_path: str = ""
    google_service_account_json: str = ""
    feeds: tuple[str, ...] = field(default_factory=lambda: FEED_SOURCES)
    max_articles: int = 100
    lookback_days: int = 60
    post_delay_sec: float = 30.0
    feed_timeout_sec: int = 10
    content_max_chars: int = 3000
    language_filter_enabled: bool = True
    timezone: str = "UTC"

    @property
    def ledger_enabled(self) -> bool:
        return bool(self.sheets_spreadsheet_id)

    def missing_required(self) -> list[str]:
        missing: list[str] = []
        if not self.slack_token:
            missing.append("SLACK_BOT_TOKEN")
        if not self.slack_channel_id:
            missing.append("SLACK_CHANNEL_ID")
        if not self.llm_api_key:
            missing.append("OPENAI_API_KEY" if self.llm_provider == "openai" else "GEMINI_API_KEY")
        return missing


def load_config(env: Mapping[str, str] | None = None) -> BotConfig:
    """Build the run configuration once from the environment (.env already loaded)."""
    env = os.environ if env is None else env

    provider = _env(env, "LLM_PROVIDER", "gemini").lower()
    if provider not in {"gemini", "openai"}:
        provider = "gemini"
    if provider == "openai":
        api_key = _env(env, "OPENAI_API_KEY")
        model = _env(env, "OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
    else:
        api_key = _env(env, "GEMINI_API_KEY")
        model = _env(env, "GEMINI_MODEL", DEFAULT_GEMINI_MODEL)

    reactions = tuple(parse_list(env.get("SLACK_POST_REACTIONS"))) or DEFAULT_REACTIONS
    feeds = tuple(parse_list(env.get("FEED_URLS"))) or FEED_SOURCES

    post_delay = _env_float(env, "POST_DELAY_SEC", 30.0)
    if post_delay <= 0:
        post_delay = 30.0

    return BotConfig(
        slack_token=_env(env, "SLACK_BOT_TOKEN"),
        slack_channel_id=_env(env, "SLACK_CHANNEL_ID"),
        error_recipients=tuple(parse_list(env.get("SLACK_ERROR_USER_IDS"))),
        reactions=reactions,
        llm_provider=provider,
        llm_api_key=api_key,
        llm_model=model,
        llm_timeout_sec=_env_int(env, "LLM_TIMEOUT_SEC", 120),
        llm_max_retries=max(0, _env_int(env, "LLM_MAX_RETRIES", 2)),
        sheets_spreadsheet_id=_env(env, "GOOGLE_SHEETS_SPREADSHEET_ID"),
        sheets_worksheet_name=_env(env, "GOOGLE_SHEETS_WORKSHEET_NAME", "Articles"),
        google_credentials_path=_env(env, "GOOGLE_APPLICATION_CREDENTIALS"),
        google_service_account_json=_env(env, "GOOGLE_SERVICE_ACCOUNT_JSON"),
        feeds=feeds,
        max_articles=max(1, _env_int(env, "MAX_ARTICLES", 100)),
        lookback_days=_env_int(env, "LOOKBACK_WINDOW_DAYS", 60),
        post_delay_sec=post_delay,
        feed_timeout_sec=_env_int(env, "FEED_TIMEOUT_SEC", 10),
        content_max_chars=_env_int(env, "SELECTION_CONTENT_MAX_CHARS", 3000),
        language_filter_enabled=_env_bool(env, "LANGUAGE_FILTER_ENABLED", True),
        timezone=_env(env, "BOT_TIMEZONE", "UTC"),
    )
