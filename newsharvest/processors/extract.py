"""Ruleset-driven extraction of candidate records from raw HTML.

A ruleset is a set of ordered selector chains. Containers come from the first
chain entry that matches anything; titles and contents from the first entry
whose text is long enough. When the whole ruleset yields nothing, the generic
pass in :mod:`newsharvest.processors.fallback` takes over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from ..models import ExtractionRuleset, RawCandidate
from ..utils.logging import get_logger
from .dom import HEADINGS, node_text, parse_html, resolve_href
from .fallback import DEFAULT_KEYWORDS, fallback_candidates
from .normalize import text_lines

logger = get_logger("nh.processors.extract")

MIN_SELECTED_TITLE = 5  # selector match must be longer than this
MIN_ANCHOR_TITLE = 10  # anchor text must be longer than this
MIN_LINE_TITLE = 10
MAX_LINE_TITLE = 100
MIN_SELECTED_CONTENT = 20  # selector match must be longer than this
MIN_LINE_CONTENT = 20
MAX_CONTENT_LINES = 2


@dataclass(slots=True)
class ExtractionResult:
    candidates: List[RawCandidate] = field(default_factory=list)
    containers: int = 0
    used_fallback: bool = False


def select_containers(soup: BeautifulSoup, selectors: Sequence[str], limit: int) -> List[Tag]:
    """Matches of the first selector that finds anything, capped at ``limit``."""
    for selector in selectors:
        matches = soup.select(selector, limit=limit)
        if matches:
            logger.debug("Container selector %r matched %d node(s)", selector, len(matches))
            return matches[:limit]
    return []


def first_matching_text(container: Tag, selectors: Iterable[str], *, longer_than: int) -> str:
    for selector in selectors:
        text = node_text(container.select_one(selector))
        if len(text) > longer_than:
            return text
    return ""


def resolve_title(container: Tag, selectors: Sequence[str]) -> str:
    title = first_matching_text(container, selectors, longer_than=MIN_SELECTED_TITLE)
    if title:
        return title

    anchor_text = node_text(container.find("a"))
    if len(anchor_text) > MIN_ANCHOR_TITLE:
        return anchor_text

    heading_text = node_text(container.find(HEADINGS))
    if heading_text:
        return heading_text

    lines = text_lines(container.get_text("\n"), min_length=MIN_LINE_TITLE)
    return lines[0][:MAX_LINE_TITLE].strip() if lines else ""


def resolve_content(container: Tag, selectors: Sequence[str], title: str) -> str:
    content = first_matching_text(container, selectors, longer_than=MIN_SELECTED_CONTENT)
    if content:
        return content

    # Drop lines that repeat the title, recognised by its first three words.
    title_words = title.lower().split()[:3]
    lines = [
        line
        for line in text_lines(container.get_text("\n"), min_length=MIN_LINE_CONTENT)
        if not (title_words and all(w in line.lower().split() for w in title_words))
    ]
    return " ".join(lines[:MAX_CONTENT_LINES]).strip()


def resolve_url(container: Tag, base_url: str) -> Optional[str]:
    anchor = container.find("a", href=True)
    return resolve_href(anchor.get("href") if anchor else None, base_url)


def extract_with_ruleset(soup: BeautifulSoup, ruleset: ExtractionRuleset, *, base_url: str) -> ExtractionResult:
    containers = select_containers(soup, ruleset.article_containers, ruleset.container_limit)
    result = ExtractionResult(containers=len(containers))
    for container in containers:
        title = resolve_title(container, ruleset.title)
        content = resolve_content(container, ruleset.content, title)
        if not title and not content:
            continue
        result.candidates.append(RawCandidate(title=title, content=content, url=resolve_url(container, base_url)))
    return result


def extract(
    html: str,
    ruleset: ExtractionRuleset,
    *,
    base_url: str,
    source_name: str,
    query: Optional[str] = None,
    keywords: Sequence[str] = DEFAULT_KEYWORDS,
) -> ExtractionResult:
    """Extract raw candidates from ``html``, falling back to generic heuristics.

    The fallback pass only runs when the ruleset produced no candidate at all.
    """
    soup = parse_html(html)
    result = extract_with_ruleset(soup, ruleset, base_url=base_url)
    if result.candidates:
        logger.debug("Ruleset extracted %d candidate(s) for %s", len(result.candidates), source_name)
        return result

    logger.info("Ruleset for %s matched nothing usable; running generic fallback", source_name)
    result.candidates = fallback_candidates(
        soup, base_url=base_url, source_name=source_name, query=query, keywords=keywords
    )
    result.used_fallback = True
    return result
