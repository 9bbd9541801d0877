"""Generic extraction used when a source's ruleset no longer matches its markup."""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from bs4 import BeautifulSoup, Tag

from ..models import RawCandidate
from ..utils.logging import get_logger
from .dom import node_text, resolve_href

logger = get_logger("nh.processors.fallback")

FALLBACK_SELECTORS = (
    'a[href*="/news/"]',
    'a[href*="/article/"]',
    'a[href*="/story/"]',
    "h1, h2, h3, h4, h5, h6",
    '[class*="title"]',
    '[class*="headline"]',
)
INSPECT_PER_SELECTOR = 5
ACCEPT_PER_SELECTOR = 3
# Fallback content is "<source>: <title>", so with a short source name a title
# under about 26 chars leaves content below quality.MIN_CONTENT_LENGTH and the
# candidate is dropped by the filter.
MIN_TITLE = 20
MAX_TITLE = 200
MAX_CONTENT = 400

# Place and role names that mark a heading as relevant without a query.
DEFAULT_KEYWORDS = (
    "kenya",
    "nairobi",
    "county",
    "governor",
    "president",
    "parliament",
    "senate",
    "minister",
    "government",
    "election",
    "iebc",
    "budget",
)


def _is_relevant(text: str, keywords: Sequence[str], query: Optional[str]) -> bool:
    lowered = text.lower()
    if query and query.strip().lower() in lowered:
        return True
    return any(k.lower() in lowered for k in keywords)


def _element_url(element: Tag, base_url: str) -> Optional[str]:
    if element.name == "a":
        anchor = element
    else:
        anchor = element.find_parent("a", href=True) or element.find("a", href=True)
    return resolve_href(anchor.get("href") if anchor else None, base_url)


def fallback_candidates(
    soup: BeautifulSoup,
    *,
    base_url: str,
    source_name: str,
    query: Optional[str] = None,
    keywords: Sequence[str] = DEFAULT_KEYWORDS,
) -> List[RawCandidate]:
    """Headline-like elements that look relevant, with a synthesized snippet.

    Each fallback selector contributes at most ``ACCEPT_PER_SELECTOR``
    candidates out of its first ``INSPECT_PER_SELECTOR`` matches.
    """
    candidates: List[RawCandidate] = []
    seen: Set[str] = set()
    for selector in FALLBACK_SELECTORS:
        accepted = 0
        for element in soup.select(selector, limit=INSPECT_PER_SELECTOR):
            if accepted >= ACCEPT_PER_SELECTOR:
                break
            text = node_text(element)
            if not (MIN_TITLE <= len(text) <= MAX_TITLE) or not _is_relevant(text, keywords, query):
                continue
            key = text.lower()
            if key in seen:
                continue
            seen.add(key)
            accepted += 1
            candidates.append(
                RawCandidate(
                    title=text,
                    content=f"{source_name}: {text}"[:MAX_CONTENT].strip(),
                    url=_element_url(element, base_url),
                )
            )
    logger.debug("Fallback pass found %d candidate(s) for %s", len(candidates), source_name)
    return candidates
