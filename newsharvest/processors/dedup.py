from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, List, Set

from ..models import Record

TITLE_KEY_LENGTH = 50


def title_key(title: str) -> str:
    """Dedup key: the lowercased title's first 50 characters."""
    return (title or "").lower()[:TITLE_KEY_LENGTH]


@dataclass(slots=True)
class DedupStats:
    total: int
    kept: int
    duplicates: int
    by_source: dict[str, int]


def dedupe_records(records: Iterable[Record], *, return_stats: bool = False):
    """Drop records whose title key was already seen; first occurrence wins.

    Single stable pass. Returns the unique records, or ``(unique, DedupStats)``
    when ``return_stats`` is True; ``by_source`` counts dropped duplicates per
    source.
    """
    seen: Set[str] = set()
    unique: List[Record] = []
    dropped = defaultdict(int)
    total = 0
    for record in records:
        total += 1
        key = title_key(record.title)
        if key in seen:
            dropped[record.source] += 1
            continue
        seen.add(key)
        unique.append(record)
    if not return_stats:
        return unique
    stats = DedupStats(total=total, kept=len(unique), duplicates=total - len(unique), by_source=dict(dropped))
    return unique, stats
