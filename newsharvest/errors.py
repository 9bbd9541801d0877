"""Error taxonomy for the extractor.

Everything except ``ConfigError`` is local to one source: it is recorded in
that source's outcome and never propagated to sibling sources or to the
aggregate call.
"""

from __future__ import annotations

from typing import Optional


class ScraperError(Exception):
    """Base class for all extractor errors."""


class ConfigError(ScraperError):
    """Raised when the source configuration is empty, invalid or missing fields."""


class TransportError(ScraperError):
    """Raised when a URL could not be fetched after all retry attempts."""

    def __init__(self, url: str, cause: object, *, attempts: int = 1) -> None:
        self.url = url
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"GET {url} failed after {attempts} attempt(s): {cause}")


class DeadlineExceeded(ScraperError):
    """Raised when the caller's deadline expired or the run was cancelled."""

    def __init__(self, what: Optional[str] = None) -> None:
        self.what = what
        super().__init__(f"Deadline exceeded before {what}" if what else "Deadline exceeded")


class ExtractionYieldedNothing(ScraperError):
    """The ruleset matched no candidates; the generic fallback pass ran."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"Ruleset for {source} yielded no candidates")


class NoCandidatesAfterFallback(ScraperError):
    """Neither the ruleset nor the generic fallback produced a candidate."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"No candidates extracted from {source}, even after fallback")


class FilterRejectedAll(ScraperError):
    """Every extracted candidate failed the quality checks."""

    def __init__(self, source: str, candidates: int) -> None:
        self.source = source
        self.candidates = candidates
        super().__init__(f"All {candidates} candidate(s) from {source} were rejected by the quality filter")
