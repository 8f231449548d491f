from __future__ import annotations

# 시트 컬럼 순서 (기존 시트 헤더와 동일해야 함)
SHEET_COLUMNS: tuple[str, ...] = (
    "articleTitle",
    "articleUrl",
    "articlePublisher",
    "articlePublishedDate",
    "articleImageUrl",
    "articleImageCaption",
    "articleImageCredit",
    "articleImageLicense",
    "articleImageLicenseUrl",
    "score_relevance",
    "score_impact",
    "score_source",
    "score_recency",
    "score_apac",
    "score_total",
    "keyTakeaway",
    "insights",
    "whyItMatters",
    "whyItMattersFor1000heads",
    "postedDate",
    "deliveryTimestamp",
    "deliveryChannel",
)

SCORE_FIELDS: tuple[str, ...] = (
    "score_relevance",
    "score_impact",
    "score_source",
    "score_recency",
    "score_apac",
    "score_total",
)

SHEETS_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/spreadsheets",)

DEFAULT_REACTIONS: tuple[str, ...] = ("thumbsup", "no_entry", "eyes")

FEEDBACK_THREAD_TEXT = (
    "Quick feedback please: react with :+1: if helpful, :no_entry: if off-brief, "
    "and :eyes: if worth a deeper look."
)

# Slack Block Kit limits
SLACK_HEADER_MAX_CHARS = 150
SLACK_FIELD_MAX_CHARS = 2000
SLACK_SECTION_MAX_CHARS = 3000

EMPTY_PLACEHOLDER = "—"

# Slack rejects vector images in image blocks.
UNSUPPORTED_IMAGE_SUFFIXES: tuple[str, ...] = (".svg", ".svgz")
IMAGE_URL_SCHEMES: tuple[str, ...] = ("http://", "https://")

# 랭킹 응답이 객체로 감싸져 올 때 배열을 찾는 키
SELECTION_WRAPPER_KEYS: tuple[str, ...] = (
    "articles",
    "selections",
    "selection",
    "results",
    "items",
    "data",
    "top_articles",
)

MAX_INSIGHTS = 5
