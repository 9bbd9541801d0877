"""Small BeautifulSoup helpers shared by the extraction passes."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .normalize import normalize_plain_text

HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
_IGNORED_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "#")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def node_text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return normalize_plain_text(node.get_text(" "))


def resolve_href(href: Optional[str], base_url: str) -> Optional[str]:
    """Absolute URL for ``href`` relative to ``base_url``; None for non-links."""
    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(_IGNORED_HREF_PREFIXES):
        return None
    return urljoin(base_url, href)
