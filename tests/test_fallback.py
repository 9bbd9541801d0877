"""Tests for the generic fallback pass."""

from helpers import CARD_RULESET, page

from newsharvest.processors.dom import parse_html
from newsharvest.processors.extract import extract
from newsharvest.processors.fallback import ACCEPT_PER_SELECTOR, fallback_candidates
from newsharvest.processors.quality import MIN_CONTENT_LENGTH, filter_candidates

BASE = "https://www.the-star.co.ke/news"


def _fallback(html, **kwargs):
    return fallback_candidates(parse_html(html), base_url=BASE, source_name="The Star", **kwargs)


def test_broken_ruleset_triggers_fallback():
    html = page("<h2>Kenya Parliament Debates New Housing Levy Bill</h2>")

    result = extract(html, CARD_RULESET, base_url=BASE, source_name="The Star")

    assert result.used_fallback
    assert [c.title for c in result.candidates] == ["Kenya Parliament Debates New Housing Levy Bill"]


def test_each_selector_accepts_at_most_three():
    headings = "".join(f"<h2>Nairobi county update number {i} today</h2>" for i in range(8))

    cands = _fallback(page(headings))

    assert len(cands) == ACCEPT_PER_SELECTOR == 3
    assert cands[0].title == "Nairobi county update number 0 today"


def test_only_first_five_matches_are_inspected():
    irrelevant = "".join(f"<h2>Weekend football results round {i}</h2>" for i in range(5))
    relevant = "<h2>Governor of Nairobi presents county budget</h2>"

    assert _fallback(page(irrelevant + relevant)) == []


def test_length_bounds_apply_to_fallback_titles():
    html = page("<h2>Kenya news</h2>", f"<h2>Kenya {'x' * 200}</h2>")

    assert _fallback(html) == []


def test_query_match_without_keywords_is_accepted():
    html = page("<h3>Weather outlook for the coming long weekend</h3>")

    assert _fallback(html) == []
    assert [c.title for c in _fallback(html, query="WEATHER")] == ["Weather outlook for the coming long weekend"]


def test_custom_keywords_replace_defaults():
    html = page("<h2>Uganda elects new speaker of the house</h2>", "<h2>Kenya budget is read in parliament</h2>")

    cands = _fallback(html, keywords=("uganda",))

    assert [c.title for c in cands] == ["Uganda elects new speaker of the house"]


def test_content_is_prefixed_with_source_name():
    cand = _fallback(page("<h2>President assents to the finance bill</h2>"))[0]

    assert cand.content == "The Star: President assents to the finance bill"


def test_anchor_matches_keep_their_link_and_texts_are_not_repeated():
    html = page(
        '<a href="/news/senate-vote"><h2>Senate votes on county revenue sharing</h2></a>'
    )

    cands = _fallback(html)

    assert len(cands) == 1
    assert cands[0].url == "https://www.the-star.co.ke/news/senate-vote"


def test_heading_without_link_has_no_url():
    cand = _fallback(page("<h1>Minister outlines new education plan</h1>"))[0]

    assert cand.url is None


def test_short_fallback_titles_from_short_source_names_fail_the_content_minimum():
    short = "Kenya budget vote 24"
    longer = "Kenya budget vote passes in senate"
    html = page(f"<h2>{short}</h2><h2>{longer}</h2>")

    cands = fallback_candidates(parse_html(html), base_url=BASE, source_name="IEBC")

    assert [c.content for c in cands] == [f"IEBC: {short}", f"IEBC: {longer}"]
    assert len(cands[0].content) < MIN_CONTENT_LENGTH
    assert [c.title for c in filter_candidates(cands)] == [longer]
