from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Sequence

import google.auth
from google.oauth2 import service_account
from googleapiclient.discovery import build

from news_curator.core.constants import SHEET_COLUMNS, SHEETS_SCOPES
from news_curator.models import PostedRecord
from news_curator.utils import normalize_url

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[], Any]


def column_letter(index: int) -> str:
    """1-based column index -> A1 column letters (1 -> A, 27 -> AA)."""
    name = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        name = chr(65 + remainder) + name
    return name


def build_sheets_service(*, credentials_path: str = "", service_account_json: str = "") -> Any:
    """Google Sheets API 서비스 객체 반환 (서비스 계정 JSON > 키 파일 > ADC 순)."""
    if service_account_json:
        creds = service_account.Credentials.from_service_account_info(
            json.loads(service_account_json),
            scopes=list(SHEETS_SCOPES),
        )
    elif credentials_path:
        creds = service_account.Credentials.from_service_account_file(
            credentials_path,
            scopes=list(SHEETS_SCOPES),
        )
    else:
        creds, _ = google.auth.default(scopes=list(SHEETS_SCOPES))
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def record_to_row(record: PostedRecord) -> list[Any]:
    row: list[Any] = []
    for key in SHEET_COLUMNS:
        if key == "articleUrl":
            row.append(normalize_url(record.get("articleUrl")) or record.get("articleUrl") or "")
            continue
        value = record.get(key)
        if key == "insights" and isinstance(value, (list, tuple)):
            row.append("\n".join(str(v) for v in value))
            continue
        row.append("" if value is None else value)
    return row


class SheetsLedger:
    """Append-only record of posted articles, used for duplicate suppression."""

    def __init__(
        self,
        *,
        spreadsheet_id: str,
        worksheet_name: str = "Articles",
        service_factory: Optional[ServiceFactory] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._worksheet_name = worksheet_name
        self._service_factory = service_factory or build_sheets_service
        self._service: Any = None
        self._log = log or logger
        self.last_load_error: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self._spreadsheet_id)

    @property
    def data_range(self) -> str:
        sheet = "'" + self._worksheet_name.replace("'", "''") + "'"
        return f"{sheet}!A2:{column_letter(len(SHEET_COLUMNS))}"

    def _get_service(self) -> Any:
        if self._service is None:
            self._service = self._service_factory()
        return self._service

    def load(self) -> set[str]:
        """Normalized URLs of every posted row; empty set if the sheet cannot be read."""
        self.last_load_error = None
        if not self.enabled:
            self.last_load_error = "no spreadsheet id configured"
            self._log.warning("No Google Sheets spreadsheet ID configured; skipping duplicate check.")
            return set()
        try:
            result = (
                self._get_service()
                .spreadsheets()
                .values()
                .get(spreadsheetId=self._spreadsheet_id, range=self.data_range)
                .execute()
            )
        except Exception as e:
            self.last_load_error = str(e)
            self._log.warning("Failed to read Google Sheet; continuing without duplicate filter: %s", e)
            return set()

        url_index = SHEET_COLUMNS.index("articleUrl")
        urls: set[str] = set()
        for row in result.get("values") or []:
            if len(row) <= url_index:
                continue
            key = normalize_url(row[url_index])
            if key:
                urls.add(key)
        self._log.info("Loaded %s posted URLs from ledger", len(urls))
        return urls

    def append(self, records: Sequence[PostedRecord]) -> int:
        """Append one row per unique normalized URL; failures are logged, never raised."""
        if not self.enabled:
            self._log.warning("No Google Sheets spreadsheet ID configured; skipping sheet append.")
            return 0
        seen: set[str] = set()
        rows: list[list[Any]] = []
        for record in records:
            key = normalize_url(record.get("articleUrl"))
            if key and key in seen:
                continue
            if key:
                seen.add(key)
            rows.append(record_to_row(record))
        if not rows:
            return 0
        try:
            (
                self._get_service()
                .spreadsheets()
                .values()
                .append(
                    spreadsheetId=self._spreadsheet_id,
                    range=self.data_range,
                    valueInputOption="USER_ENTERED",
                    insertDataOption="INSERT_ROWS",
                    body={"values": rows},
                )
                .execute()
            )
        except Exception as e:
            self._log.warning("Failed to append to Google Sheet: %s", e)
            return 0
        return len(rows)
