def test_package_imports() -> None:
    import news_curator  # noqa: F401

    from news_curator.core import config, constants  # noqa: F401
    from news_curator.export import delivery, notifier, sheets_ledger, slack_client  # noqa: F401
    from news_curator.processing import dedupe, ingest, llm_client, selection  # noqa: F401
    from news_curator import runner  # noqa: F401


def test_sheet_layout_has_22_columns() -> None:
    from news_curator.core.constants import SHEET_COLUMNS

    assert len(SHEET_COLUMNS) == 22
    assert SHEET_COLUMNS[1] == "articleUrl"
    assert SHEET_COLUMNS[-3:] == ("postedDate", "deliveryTimestamp", "deliveryChannel")
