from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class Article(TypedDict):
    articleTitle: str
    articleUrl: str
    articlePublisher: str
    articlePublishedDate: str | None
    articleAuthor: str | None
    articleContent: str
    articleImageUrl: str | None


class ScoredSelection(TypedDict, total=False):
    articleTitle: str
    articleUrl: str
    articlePublisher: str
    articlePublishedDate: str | None
    articleAuthor: str | None
    articleContent: str
    articleImageUrl: str | None
    articleImageCaption: str | None
    articleImageCredit: str | None
    articleImageLicense: str | None
    articleImageLicenseUrl: str | None
    score_relevance: float | str | None
    score_impact: float | str | None
    score_source: float | str | None
    score_recency: float | str | None
    score_apac: float | str | None
    score_total: float | str | None
    keyTakeaway: str
    insights: list[str]
    whyItMatters: str
    whyItMattersFor1000heads: str


class PostedRecord(ScoredSelection, total=False):
    postedDate: str
    deliveryTimestamp: str
    deliveryChannel: str


@dataclass(frozen=True)
class DeliveryResult:
    ts: str
    channel: str
