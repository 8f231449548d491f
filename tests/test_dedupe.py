from news_curator.processing.dedupe import filter_fresh_articles, is_known
from news_curator.utils import normalize_url


def test_ledger_hit_is_excluded_regardless_of_formatting() -> None:
    known = {normalize_url("https://example.com/story")}
    items = [
        {"articleUrl": "HTTPS://Example.com/Story/"},
        {"articleUrl": "https://example.com/\u200bstory"},
        {"articleUrl": " https://example.com/story "},
        {"articleUrl": "https://example.com/other"},
    ]

    fresh = filter_fresh_articles(items, known)

    assert [i["articleUrl"] for i in fresh] == ["https://example.com/other"]


def test_batch_duplicates_keep_first() -> None:
    items = [
        {"articleUrl": "https://a.com/x", "articleTitle": "first"},
        {"articleUrl": "https://A.com/x/", "articleTitle": "second"},
        {"articleUrl": "https://a.com/y", "articleTitle": "third"},
    ]

    fresh = filter_fresh_articles(items, set())

    assert [i["articleTitle"] for i in fresh] == ["first", "third"]


def test_items_without_url_are_kept() -> None:
    items = [{"articleUrl": ""}, {"articleUrl": None}, {}]
    assert len(filter_fresh_articles(items, {"https://a.com"})) == 3


def test_dedupe_logs_hits() -> None:
    messages: list[str] = []
    filter_fresh_articles([{"articleUrl": "https://a.com"}], {"https://a.com"}, logger=messages.append)
    assert len(messages) == 1


def test_is_known() -> None:
    assert is_known("https://A.com/", {"https://a.com"}) is True
    assert is_known("", {""}) is False
    assert is_known("https://b.com", {"https://a.com"}) is False


def test_filter_uses_is_known_for_ledger_hits(monkeypatch) -> None:
    import news_curator.processing.dedupe as dedupe_mod

    checked: list[str] = []

    def _is_known(url, known_urls) -> bool:
        checked.append(url)
        return url == "https://a.com/old"

    monkeypatch.setattr(dedupe_mod, "is_known", _is_known)

    fresh = filter_fresh_articles([{"articleUrl": "https://A.com/old/"}, {"articleUrl": "https://a.com/new"}], set())

    assert [i["articleUrl"] for i in fresh] == ["https://a.com/new"]
    assert checked == ["https://a.com/old", "https://a.com/new"]
