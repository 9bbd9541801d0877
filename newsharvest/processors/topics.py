from __future__ import annotations

from typing import Iterable, List, Sequence

from ..models import Record

POLITICAL_KEYWORDS = (
    "corruption",
    "economy",
    "unemployment",
    "healthcare",
    "education",
    "infrastructure",
    "agriculture",
    "devolution",
    "security",
    "housing",
    "cost of living",
    "taxation",
    "governance",
    "transparency",
)


def extract_trending_topics(
    records: Iterable[Record],
    *,
    keywords: Sequence[str] = POLITICAL_KEYWORDS,
    limit: int = 8,
) -> List[str]:
    """Hashtags for the keywords mentioned anywhere in ``records``, in keyword order."""
    corpus = [f"{r.title} {r.content}".lower() for r in records]
    topics: List[str] = []
    for keyword in keywords:
        if len(topics) >= limit:
            break
        needle = keyword.lower()
        if any(needle in text for text in corpus):
            topics.append("#" + "".join(needle.split()))
    return topics
