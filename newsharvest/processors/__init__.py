"""Processing pipeline: extraction, fallback, quality filtering, deduplication."""

from .normalize import normalize_plain_text, text_lines, truncate
from .extract import ExtractionResult, extract
from .fallback import DEFAULT_KEYWORDS, fallback_candidates
from .quality import accept, filter_candidates
from .dedup import dedupe_records, title_key
from .topics import extract_trending_topics

__all__ = [
    "normalize_plain_text",
    "text_lines",
    "truncate",
    "ExtractionResult",
    "extract",
    "DEFAULT_KEYWORDS",
    "fallback_candidates",
    "accept",
    "filter_candidates",
    "dedupe_records",
    "title_key",
    "extract_trending_topics",
]
