from __future__ import annotations

from typing import Any, Callable

from news_curator.scrapers.article_fetcher import ExtractedArticle

LogFunc = Callable[[str], None]
FeedFetchFunc = Callable[[str], Any]
ExtractFunc = Callable[[str], ExtractedArticle]
ShuffleFunc = Callable[[list[Any]], None]
SleepFunc = Callable[[float], None]
