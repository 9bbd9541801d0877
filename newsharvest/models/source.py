from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Tuple
from urllib.parse import quote_plus, urlparse

Category = Literal["news", "government", "social"]

CATEGORIES: Tuple[str, ...] = ("news", "government", "social")

# Upper bound on container nodes considered per source.
MAX_CONTAINERS = 10


@dataclass(frozen=True, slots=True)
class ExtractionRuleset:
    """Ordered CSS selector chains used to locate records in a source's markup.

    Each chain is tried in order and the first selector that produces a usable
    match wins.
    """

    article_containers: Tuple[str, ...]
    title: Tuple[str, ...] = ()
    content: Tuple[str, ...] = ()
    max_containers: int = MAX_CONTAINERS

    @property
    def container_limit(self) -> int:
        return max(0, min(self.max_containers, MAX_CONTAINERS))


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """Configuration for one external site.

    ``url`` may contain a ``{query}`` placeholder; such sources are only
    scraped when the caller supplies a query.
    """

    name: str
    url: str
    category: Category
    ruleset: ExtractionRuleset
    headers: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def requires_query(self) -> bool:
        return "{query}" in self.url

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url.replace("{query}", ""))
        return f"{parsed.scheme}://{parsed.netloc}"

    def resolve_url(self, query: Optional[str] = None) -> str:
        if not self.requires_query:
            return self.url
        return self.url.replace("{query}", quote_plus((query or "").strip()))
