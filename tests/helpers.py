"""HTML builders, source factories and a fake fetcher shared by the tests."""

from __future__ import annotations

from typing import Dict, List, Union

from newsharvest.models import ExtractionRuleset, SourceDescriptor

CARD_RULESET = ExtractionRuleset(
    article_containers=(".story-card",),
    title=(".card-title a",),
    content=(".card-summary",),
)

def card(title: str, summary: str, href: str = "/news/item") -> str:
    return (
        '<div class="story-card">'
        f'<h3 class="card-title"><a href="{href}">{title}</a></h3>'
        f'<p class="card-summary">{summary}</p>'
        "</div>"
    )

def page(*cards: str) -> str:
    return "<html><head><title>Test</title></head><body>" + "".join(cards) + "</body></html>"

def make_source(
    name: str,
    url: str = "https://example.com/news",
    category: str = "news",
    ruleset: ExtractionRuleset = CARD_RULESET,
) -> SourceDescriptor:
    return SourceDescriptor(name=name, url=url, category=category, ruleset=ruleset)


class FakeFetcher:
    """Stands in for ``fetch_html``: maps URLs to HTML or to an exception to raise."""

    def __init__(self, responses: Dict[str, Union[str, BaseException]]) -> None:
        self.responses = responses
        self.calls: List[dict] = []

    def __call__(self, url: str, *, policy, headers=None, deadline=None, on_attempt=None) -> str:
        self.calls.append({"url": url, "policy": policy, "headers": headers, "deadline": deadline})
        if on_attempt is not None:
            on_attempt(1)
        response = self.responses[url]
        if isinstance(response, BaseException):
            raise response
        return response

    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]

