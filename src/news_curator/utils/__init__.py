from .common import (
    clean_text,
    clean_text_ws,
    days_between,
    html_to_text,
    is_english,
    normalize_url,
    parse_datetime_utc,
    strip_zero_width,
    struct_time_to_iso,
)

__all__ = [
    "clean_text",
    "clean_text_ws",
    "days_between",
    "html_to_text",
    "is_english",
    "normalize_url",
    "parse_datetime_utc",
    "strip_zero_width",
    "struct_time_to_iso",
]
