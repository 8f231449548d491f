from __future__ import annotations

from news_curator.core.constants import SHEET_COLUMNS
from news_curator.export.sheets_ledger import SheetsLedger, column_letter, record_to_row


class _Request:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self._result = result
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        return self._result


class _Values:
    def __init__(self, rows: list[list[str]], *, get_error: Exception | None = None, append_error: Exception | None = None):
        self.rows = rows
        self.get_error = get_error
        self.append_error = append_error
        self.get_calls: list[dict] = []
        self.append_calls: list[dict] = []

    def get(self, **kwargs):
        self.get_calls.append(kwargs)
        return _Request({"values": self.rows}, self.get_error)

    def append(self, **kwargs):
        self.append_calls.append(kwargs)
        return _Request({"updates": {}}, self.append_error)


class _Spreadsheets:
    def __init__(self, values: _Values) -> None:
        self._values = values

    def values(self) -> _Values:
        return self._values


class _Service:
    def __init__(self, values: _Values) -> None:
        self._spreadsheets = _Spreadsheets(values)

    def spreadsheets(self) -> _Spreadsheets:
        return self._spreadsheets


def _ledger(values: _Values, spreadsheet_id: str = "sheet-1") -> SheetsLedger:
    return SheetsLedger(spreadsheet_id=spreadsheet_id, service_factory=lambda: _Service(values))


def test_column_letter() -> None:
    assert column_letter(1) == "A"
    assert column_letter(22) == "V"
    assert column_letter(27) == "AA"


def test_load_normalizes_url_column() -> None:
    values = _Values(
        [
            ["Title A", "HTTPS://Example.com/A/"],
            ["Title B", " https://example.com/b "],
            ["Title only"],
            ["Empty url", ""],
        ]
    )
    ledger = _ledger(values)

    assert ledger.load() == {"https://example.com/a", "https://example.com/b"}
    assert ledger.last_load_error is None
    assert values.get_calls[0] == {"spreadsheetId": "sheet-1", "range": "'Articles'!A2:V"}


def test_load_failure_degrades_to_empty_set() -> None:
    ledger = _ledger(_Values([], get_error=RuntimeError("403 forbidden")))

    assert ledger.load() == set()
    assert "403 forbidden" in (ledger.last_load_error or "")


def test_service_factory_failure_degrades_to_empty_set() -> None:
    def _broken():
        raise ValueError("bad credentials")

    ledger = SheetsLedger(spreadsheet_id="sheet-1", service_factory=_broken)

    assert ledger.load() == set()
    assert ledger.last_load_error == "bad credentials"


def test_unconfigured_ledger() -> None:
    values = _Values([])
    ledger = _ledger(values, spreadsheet_id="")

    assert ledger.enabled is False
    assert ledger.load() == set()
    assert ledger.last_load_error
    assert ledger.append([{"articleUrl": "https://a"}]) == 0
    assert values.get_calls == []
    assert values.append_calls == []


def test_append_dedupes_batch_keeping_first() -> None:
    values = _Values([])
    ledger = _ledger(values)
    records = [
        {"articleTitle": "first", "articleUrl": "https://Example.com/x/"},
        {"articleTitle": "second", "articleUrl": "https://example.com/x"},
    ]

    assert ledger.append(records) == 1

    call = values.append_calls[0]
    assert call["valueInputOption"] == "USER_ENTERED"
    assert call["insertDataOption"] == "INSERT_ROWS"
    rows = call["body"]["values"]
    assert len(rows) == 1
    assert rows[0][0] == "first"
    assert rows[0][1] == "https://example.com/x"


def test_append_failure_is_swallowed() -> None:
    ledger = _ledger(_Values([], append_error=RuntimeError("quota")))
    assert ledger.append([{"articleUrl": "https://a"}]) == 0


def test_record_to_row_layout() -> None:
    record = {
        "articleTitle": "T",
        "articleUrl": "https://A.com/",
        "insights": ["one", "two"],
        "score_total": 38,
        "postedDate": "2024-03-10T12:00:00+00:00",
        "deliveryTimestamp": "1710072000.000100",
        "deliveryChannel": "C1",
        "articleImageCaption": None,
    }

    row = record_to_row(record)

    assert len(row) == len(SHEET_COLUMNS)
    by_name = dict(zip(SHEET_COLUMNS, row))
    assert by_name["articleUrl"] == "https://a.com"
    assert by_name["insights"] == "one\ntwo"
    assert by_name["score_total"] == 38
    assert by_name["articleImageCaption"] == ""
    assert by_name["keyTakeaway"] == ""
    assert row[-3:] == ["2024-03-10T12:00:00+00:00", "1710072000.000100", "C1"]
