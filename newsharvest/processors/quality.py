from __future__ import annotations

from typing import Iterable, List, Optional

from ..models import RawCandidate

MIN_TITLE_LENGTH = 10
MIN_CONTENT_LENGTH = 30
# Exclusive upper bounds, checked before the record is truncated.
MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 500

TITLE_NOISE = ("cookie", "subscribe")
CONTENT_NOISE = ("click here",)


def matches_query(candidate: RawCandidate, query: Optional[str]) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return needle in candidate.title.lower() or needle in candidate.content.lower()


def accept(candidate: RawCandidate, query: Optional[str] = None) -> bool:
    """Return True if ``candidate`` looks like a real item and matches ``query``.

    Rejects empty or out-of-bounds text, cookie banners, subscription prompts
    and call-to-action snippets. Without a query every structurally valid
    candidate passes.
    """
    title = (candidate.title or "").strip()
    content = (candidate.content or "").strip()
    if not title or not content:
        return False
    if len(title) < MIN_TITLE_LENGTH or len(content) < MIN_CONTENT_LENGTH:
        return False
    if len(title) >= MAX_TITLE_LENGTH or len(content) >= MAX_CONTENT_LENGTH:
        return False
    title_lower = title.lower()
    if any(marker in title_lower for marker in TITLE_NOISE):
        return False
    content_lower = content.lower()
    if any(marker in content_lower for marker in CONTENT_NOISE):
        return False
    return matches_query(candidate, query)


def filter_candidates(candidates: Iterable[RawCandidate], query: Optional[str] = None) -> List[RawCandidate]:
    return [c for c in candidates if accept(c, query)]
