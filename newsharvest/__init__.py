"""Top-level package for newsharvest.

Fetches HTML from a fixed set of unreliable news, government and social
sites, extracts structured records from inconsistent markup, tolerates
per-source failure and deduplicates the combined output.
"""

from .errors import (
    ConfigError,
    DeadlineExceeded,
    ExtractionYieldedNothing,
    FilterRejectedAll,
    NoCandidatesAfterFallback,
    ScraperError,
    TransportError,
)
from .orchestrator import Scraper

__all__ = [
    "Scraper",
    "ScraperError",
    "ConfigError",
    "TransportError",
    "DeadlineExceeded",
    "ExtractionYieldedNothing",
    "NoCandidatesAfterFallback",
    "FilterRejectedAll",
]
