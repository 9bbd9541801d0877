from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import (
    DeadlineExceeded,
    ExtractionYieldedNothing,
    FilterRejectedAll,
    NoCandidatesAfterFallback,
    ScraperError,
    TransportError,
)
from .fetchers import fetch_html
from .models import (
    CATEGORIES,
    AggregationResult,
    RawCandidate,
    Record,
    SourceDescriptor,
    SourceOutcome,
)
from .models.record import utcnow
from .processors import DEFAULT_KEYWORDS, dedupe_records, extract, filter_candidates, truncate
from .utils.config_loader import DEFAULT_CONFIG_PATH, load_config, validate_sources
from .utils.deadline import Deadline
from .utils.logging import get_logger
from .utils.result_cache import ResultCache
from .utils.scraper_config import ScraperConfig

logger = get_logger("nh.orchestrator")

TITLE_LIMIT = 150
CONTENT_LIMIT = 400

# Same keyword interface as fetch_html: policy, headers, deadline, on_attempt.
Fetcher = Callable[..., str]


def to_record(candidate: RawCandidate, source: SourceDescriptor, *, fallback_url: str, retrieved_at=None) -> Record:
    return Record(
        title=truncate(candidate.title.strip(), TITLE_LIMIT),
        content=truncate(candidate.content.strip(), CONTENT_LIMIT),
        source=source.name,
        category=source.category,
        retrieved_at=retrieved_at or utcnow(),
        url=candidate.url or fallback_url,
    )


class Scraper:
    """Scrape configured sources with per-source failure isolation.

    Sources within a category run one after another with a politeness delay
    between them; categories run concurrently in :meth:`scrape_all`. Nothing
    a single source does (network errors, broken markup, bugs in a ruleset)
    escapes that source's outcome.
    """

    def __init__(
        self,
        sources: Iterable[SourceDescriptor],
        *,
        config: Optional[ScraperConfig] = None,
        fallback_keywords: Sequence[str] = DEFAULT_KEYWORDS,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.sources: Tuple[SourceDescriptor, ...] = tuple(sources)
        validate_sources(self.sources)
        self.config = config or ScraperConfig()
        self.policy = self.config.retry_policy
        self.fallback_keywords = tuple(fallback_keywords)
        self._fetch = fetcher or fetch_html
        self._cache = ResultCache(self.config.cache_ttl)
        self._failed_urls: set[str] = set()
        self._failed_lock = threading.Lock()

    @classmethod
    def from_config_file(
        cls,
        path: Path | str = DEFAULT_CONFIG_PATH,
        *,
        config: Optional[ScraperConfig] = None,
        fetcher: Optional[Fetcher] = None,
    ) -> "Scraper":
        loaded = load_config(path)
        return cls(loaded.sources, config=config, fallback_keywords=loaded.fallback_keywords, fetcher=fetcher)

    # ---------------- Helpers -----------------
    def sources_for(self, category: str) -> List[SourceDescriptor]:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category '{category}'. Allowed: {list(CATEGORIES)}")
        return [s for s in self.sources if s.category == category]

    def _deadline(self, deadline: Optional[Deadline], timeout: Optional[float]) -> Optional[Deadline]:
        if deadline is not None:
            return deadline
        seconds = timeout if timeout is not None else self.config.deadline
        return Deadline(seconds) if seconds is not None else None

    @staticmethod
    def _pause(seconds: float, deadline: Optional[Deadline]) -> bool:
        if seconds <= 0:
            return deadline is None or not deadline.expired
        if deadline is None:
            time.sleep(seconds)
            return True
        return deadline.sleep(seconds)

    def _fetch_url(
        self, url: str, source: SourceDescriptor, deadline: Optional[Deadline], outcome: SourceOutcome
    ) -> str:
        if self.config.skip_failed_urls:
            with self._failed_lock:
                previously_failed = url in self._failed_urls
            if previously_failed:
                logger.info("Skipping previously failed URL for %s: %s", source.name, url)
                raise TransportError(url, "previously failed; skipped", attempts=0)
        try:
            return self._fetch(
                url,
                policy=self.policy,
                headers=source.headers,
                deadline=deadline,
                on_attempt=lambda n: setattr(outcome, "attempts", n),
            )
        except TransportError as exc:
            outcome.attempts = max(outcome.attempts, exc.attempts)
            if self.config.skip_failed_urls:
                with self._failed_lock:
                    self._failed_urls.add(url)
            raise

    # ---------------- Per source -----------------
    def _run_source(
        self, source: SourceDescriptor, query: Optional[str], deadline: Optional[Deadline]
    ) -> Tuple[List[Record], SourceOutcome]:
        outcome = SourceOutcome(source=source.name, category=source.category, status="failed")
        if source.requires_query and not (query and query.strip()):
            logger.debug("%s: needs a query; skipped", source.name)
            outcome.status = "skipped"
            return [], outcome

        url = source.resolve_url(query)
        logger.debug("%s: pending -> fetching %s", source.name, url)
        try:
            html = self._fetch_url(url, source, deadline, outcome)
            retrieved_at = utcnow()
            logger.debug("%s: fetched -> extracting", source.name)
            extracted = extract(
                html,
                source.ruleset,
                base_url=url,
                source_name=source.name,
                query=query,
                keywords=self.fallback_keywords,
            )
            if extracted.used_fallback:
                outcome.used_fallback = True
                outcome.warnings.append(str(ExtractionYieldedNothing(source.name)))
            if not extracted.candidates:
                raise NoCandidatesAfterFallback(source.name)

            logger.debug("%s: extracting -> filtering %d candidate(s)", source.name, len(extracted.candidates))
            accepted = filter_candidates(extracted.candidates, query)
            if not accepted:
                raise FilterRejectedAll(source.name, len(extracted.candidates))

            records = [to_record(c, source, fallback_url=url, retrieved_at=retrieved_at) for c in accepted]
        except ScraperError as exc:
            logger.warning("Source %s failed: %s", source.name, exc)
            outcome.error = exc
            return [], outcome
        except Exception as exc:  # noqa: BLE001 - one broken source must not affect the others
            logger.exception("Unexpected error while scraping %s: %s", source.name, exc)
            outcome.error = exc
            return [], outcome

        outcome.status = "succeeded"
        outcome.records = len(records)
        logger.info("Extracted %d record(s) from %s", len(records), source.name)
        return records, outcome

    def scrape_source(
        self,
        source: SourceDescriptor,
        query: Optional[str] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> Tuple[List[Record], Optional[BaseException]]:
        """Fetch, extract, filter and tag one source.

        Returns ``(records, None)`` on success and ``([], error)`` otherwise;
        errors are returned, never raised.
        """
        records, outcome = self._run_source(source, query, deadline)
        return records, outcome.error

    # ---------------- Per category -----------------
    def _scrape_category(
        self, category: str, query: Optional[str], deadline: Optional[Deadline]
    ) -> Tuple[List[Record], List[SourceOutcome]]:
        cached = self._cache.get(category, query)
        if cached is not None:
            logger.info("Using cached %s results (%d records)", category, len(cached.records))
            return list(cached.records), [o.copy() for o in cached.outcomes]

        records: List[Record] = []
        outcomes: List[SourceOutcome] = []
        sources = self.sources_for(category)
        fetched_any = False
        for source in sources:
            if source.requires_query and not (query and query.strip()):
                outcomes.append(SourceOutcome(source=source.name, category=source.category, status="skipped"))
                continue
            # Politeness delay between consecutive fetches within a category.
            if fetched_any and not self._pause(self.config.inter_source_delay, deadline):
                outcomes.append(self._expired_outcome(source))
                continue
            if deadline is not None and deadline.expired:
                outcomes.append(self._expired_outcome(source))
                continue
            fetched_any = True
            source_records, outcome = self._run_source(source, query, deadline)
            records.extend(source_records)
            outcomes.append(outcome)

        logger.info(
            "Category %s: %d record(s) from %d/%d source(s)",
            category,
            len(records),
            sum(1 for o in outcomes if o.status == "succeeded"),
            len(sources),
        )
        if not any(isinstance(o.error, DeadlineExceeded) for o in outcomes):
            self._cache.put(category, query, records, outcomes)
        return records, outcomes

    @staticmethod
    def _expired_outcome(source: SourceDescriptor) -> SourceOutcome:
        return SourceOutcome(
            source=source.name,
            category=source.category,
            status="failed",
            error=DeadlineExceeded(f"scraping {source.name}"),
        )

    def scrape(
        self,
        category: str,
        query: Optional[str] = None,
        *,
        deadline: Optional[Deadline] = None,
        timeout: Optional[float] = None,
    ) -> Tuple[List[Record], Dict[str, BaseException]]:
        """Scrape every source of one category sequentially.

        Returns the records of all sources that succeeded plus a map of
        source name to error for the ones that did not.
        """
        self.sources_for(category)
        records, outcomes = self._scrape_category(category, query, self._deadline(deadline, timeout))
        return records, {o.source: o.error for o in outcomes if o.error is not None}

    # ---------------- Aggregation -----------------
    def scrape_all(
        self,
        query: Optional[str] = None,
        *,
        deadline: Optional[Deadline] = None,
        timeout: Optional[float] = None,
    ) -> AggregationResult:
        """Scrape all categories concurrently, then merge and deduplicate.

        Waits for every category regardless of failures; a category that
        raises contributes no records and an entry in ``category_errors``.
        """
        deadline = self._deadline(deadline, timeout)
        logger.info("Starting scrape of all categories%s", f" for: {query}" if query else "")
        result = AggregationResult()
        with ThreadPoolExecutor(max_workers=len(CATEGORIES), thread_name_prefix="nh-category") as executor:
            futures = {c: executor.submit(self._scrape_category, c, query, deadline) for c in CATEGORIES}
            wait(futures.values())

        merged: List[Record] = []
        for category in CATEGORIES:
            try:
                records, outcomes = futures[category].result()
            except Exception as exc:  # noqa: BLE001 - isolate category failures
                logger.exception("Category %s failed: %s", category, exc)
                result.category_errors[category] = exc
                continue
            merged.extend(records)
            result.outcomes.extend(outcomes)

        result.records, stats = dedupe_records(merged, return_stats=True)
        result.deadline_exceeded = any(isinstance(o.error, DeadlineExceeded) for o in result.outcomes)
        logger.info(
            "Scrape finished: %d unique record(s) from %d total, duplicates=%d, failed_sources=%d",
            stats.kept,
            stats.total,
            stats.duplicates,
            len(result.failures),
        )
        return result

    # ---------------- Operations -----------------
    def health_check(self, urls: Optional[Iterable[str]] = None) -> Tuple[List[str], List[str]]:
        """One fetch attempt per URL, no extraction; returns ``(working, failed)``."""
        if urls is None:
            urls = list(dict.fromkeys(s.origin for s in self.sources))
        single_attempt = replace(self.policy, max_attempts=1)
        working: List[str] = []
        failed: List[str] = []
        for url in urls:
            try:
                self._fetch(url, policy=single_attempt, headers=None, deadline=None)
            except ScraperError as exc:
                logger.warning("Health check failed for %s: %s", url, exc)
                failed.append(url)
            else:
                working.append(url)
        logger.info("Health check: %d working, %d failed", len(working), len(failed))
        return working, failed

    def cache_status(self) -> dict:
        with self._failed_lock:
            failed_urls = sorted(self._failed_urls)
        return {"enabled": self._cache.enabled, "entries": self._cache.status(), "failed_urls": failed_urls}

    def clear_failed_urls(self) -> None:
        with self._failed_lock:
            self._failed_urls.clear()
        logger.info("Cleared failed URL list")

    def clear_caches(self) -> None:
        self._cache.clear()
        self.clear_failed_urls()
        logger.info("Cleared result cache")
