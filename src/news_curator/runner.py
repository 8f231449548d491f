from __future__ import annotations

import datetime
import functools
import logging
import sys
import time
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests

from news_curator.core.config import BotConfig, load_config
from news_curator.export.delivery import DeliveryEngine
from news_curator.export.notifier import ErrorNotifier
from news_curator.export.sheets_ledger import SheetsLedger, build_sheets_service
from news_curator.export.slack_client import SlackClient
from news_curator.models import DeliveryResult, PostedRecord, ScoredSelection
from news_curator.processing.dedupe import filter_fresh_articles
from news_curator.processing.ingest import FeedIngestor, fetch_feed
from news_curator.processing.llm_client import LLMClient
from news_curator.processing.selection import SelectionParseError, SelectionRequestBuilder
from news_curator.processing.types import LogFunc, SleepFunc
from news_curator.scrapers.article_fetcher import ArticleFetcher
from news_curator.utils import normalize_url

logger = logging.getLogger(__name__)


def _log(message: str) -> None:
    ts = datetime.datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {message}", flush=True)


def _resolve_timezone(name: str) -> datetime.tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using UTC", name)
        return datetime.timezone.utc


class CurationRun:
    """One scheduled run: ledger -> feeds -> dedupe -> ranking -> Slack -> ledger."""

    def __init__(
        self,
        *,
        config: BotConfig,
        ledger: SheetsLedger,
        ingestor: FeedIngestor,
        selector: SelectionRequestBuilder,
        delivery: DeliveryEngine,
        notifier: ErrorNotifier,
        logger: LogFunc,
        sleep_func: SleepFunc = time.sleep,
        now_provider: Optional[Callable[[], datetime.datetime]] = None,
    ) -> None:
        self._config = config
        self._ledger = ledger
        self._ingestor = ingestor
        self._selector = selector
        self._delivery = delivery
        self._notifier = notifier
        self._log = logger
        self._sleep = sleep_func
        self._now_provider = now_provider or (lambda: datetime.datetime.now(datetime.timezone.utc))
        self._tz = _resolve_timezone(config.timezone)

    def run(self) -> int:
        """Returns the process exit code: 0 on a clean run, 1 if the run failed."""
        try:
            self._run()
        except Exception as e:
            logger.exception("Error in run")
            self._log(f"❌ Error in run: {e}")
            self._notifier.notify(f"Error in run: {e}")
            return 1
        return 0

    def _load_known_urls(self) -> set[str]:
        known = self._ledger.load()
        if self._ledger.last_load_error:
            self._notifier.notify(
                f"Duplicate check disabled for this run (ledger unavailable: {self._ledger.last_load_error})"
            )
        else:
            self._log(f"Ledger loaded: {len(known)} posted URLs")
        return known

    def _run(self) -> None:
        known = self._load_known_urls()

        articles = self._ingestor.fetch_feeds(self._config.feeds, self._config.max_articles)
        articles = self._ingestor.filter_recent_english(
            articles,
            require_english=self._config.language_filter_enabled,
        )
        fresh = filter_fresh_articles(articles, known, logger=self._log)
        if not fresh:
            self._log("No new articles to process after dedupe.")
            return

        try:
            selections = self._selector.select(fresh)
        except SelectionParseError as e:
            self._log(f"⚠️ Ranking response unusable; nothing posted: {e}")
            self._notifier.notify(f"Ranking response unusable; nothing posted this run: {e}")
            return

        picks = filter_fresh_articles(selections, known, logger=self._log)
        if not picks:
            self._log("Every selection was already posted; nothing to do.")
            return

        for idx, pick in enumerate(picks):
            result = self._delivery.deliver(pick)
            self._ledger.append([self.build_posted_record(pick, result)])
            key = normalize_url(pick.get("articleUrl"))
            if key:
                known.add(key)
            self._log(f"Posted: {pick.get('articleTitle')} ({result.ts})")
            if idx < len(picks) - 1:
                self._sleep(self._config.post_delay_sec)

    def posted_date(self, ts: str) -> str:
        # Slack ts("1712345678.123456")의 초 단위를 게시 시각으로 사용
        seconds = str(ts or "").split(".")[0]
        if seconds.isdigit():
            dt = datetime.datetime.fromtimestamp(int(seconds), tz=datetime.timezone.utc)
        else:
            dt = self._now_provider()
        return dt.astimezone(self._tz).isoformat()

    def build_posted_record(self, selection: ScoredSelection, result: DeliveryResult) -> PostedRecord:
        record: PostedRecord = dict(selection)  # type: ignore[assignment]
        record["postedDate"] = self.posted_date(result.ts)
        record["deliveryTimestamp"] = result.ts
        record["deliveryChannel"] = result.channel
        return record


def build_default_run(config: BotConfig, *, logger: LogFunc = _log) -> CurationRun:
    http = requests.Session()
    slack = SlackClient(config.slack_token)
    fetcher = ArticleFetcher(session=http)
    ledger = SheetsLedger(
        spreadsheet_id=config.sheets_spreadsheet_id,
        worksheet_name=config.sheets_worksheet_name,
        service_factory=functools.partial(
            build_sheets_service,
            credentials_path=config.google_credentials_path,
            service_account_json=config.google_service_account_json,
        ),
    )
    ingestor = FeedIngestor(
        feed_fetcher=functools.partial(fetch_feed, timeout_sec=config.feed_timeout_sec, session=http),
        extract_func=fetcher.fetch,
        logger=logger,
        lookback_days=config.lookback_days,
    )
    llm = LLMClient(
        provider=config.llm_provider,
        api_key=config.llm_api_key,
        model=config.llm_model,
        timeout_sec=config.llm_timeout_sec,
        max_retries=config.llm_max_retries,
    )
    selector = SelectionRequestBuilder(
        generate_func=llm.generate_text,
        logger=logger,
        content_max_chars=config.content_max_chars,
        lookback_days=config.lookback_days,
    )
    delivery = DeliveryEngine(client=slack, channel_id=config.slack_channel_id, reactions=config.reactions)
    notifier = ErrorNotifier(client=slack, recipients=config.error_recipients)
    return CurationRun(
        config=config,
        ledger=ledger,
        ingestor=ingestor,
        selector=selector,
        delivery=delivery,
        notifier=notifier,
        logger=logger,
    )


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    _log("Curation run start")
    config = load_config()
    missing = config.missing_required()
    if missing:
        _log(f"❌ Missing required configuration: {', '.join(missing)}")
        return 1
    if not config.ledger_enabled:
        _log("⚠️ GOOGLE_SHEETS_SPREADSHEET_ID not set; duplicate check disabled.")
    code = build_default_run(config).run()
    _log("Curation run done" if code == 0 else "Curation run failed")
    return code


if __name__ == "__main__":
    sys.exit(main())
