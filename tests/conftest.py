"""Shared fixtures for newsharvest tests. No test touches the network."""

from __future__ import annotations

import pytest

from helpers import card, page
from newsharvest.utils.scraper_config import ScraperConfig


@pytest.fixture
def fast_config() -> ScraperConfig:
    """No delays, no cache, no deadline."""
    return ScraperConfig(
        timeout=5,
        max_attempts=3,
        base_delay=0,
        inter_source_delay=0,
        cache_ttl=0,
        skip_failed_urls=False,
        deadline=None,
    )


@pytest.fixture
def governor_html() -> str:
    return page(
        card(
            "County Governor Announces New Budget Plan",
            "The county governor presented a new budget plan focused on roads, water projects "
            "and healthcare for residents this year.",
            href="/kenya/news/county-governor-budget",
        ),
        card(
            "Heavy Rains Expected Across The Region",
            "Forecasters say heavy rains are expected across the region over the coming week, "
            "with a risk of flooding.",
            href="/kenya/news/rains",
        ),
    )
