from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..models import RetryPolicy


def _env_float(name: str, default: str) -> Callable[[], float]:
    return lambda: float(os.getenv(name, default))


def _env_int(name: str, default: str) -> Callable[[], int]:
    return lambda: int(os.getenv(name, default))


def _env_bool(name: str, default: str = "false") -> Callable[[], bool]:
    return lambda: os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


def _env_optional_float(name: str) -> Callable[[], Optional[float]]:
    def read() -> Optional[float]:
        value = os.getenv(name, "").strip()
        return float(value) if value else None

    return read


@dataclass(slots=True)
class ScraperConfig:
    """Runtime tuning for the scraper; every field has an environment override.

    Overrides are read when an instance is created, so values loaded from a
    ``.env`` file after import still apply.
    """

    timeout: float = field(default_factory=_env_float("SCRAPER_TIMEOUT", "15"))
    max_attempts: int = field(default_factory=_env_int("SCRAPER_MAX_ATTEMPTS", "3"))
    base_delay: float = field(default_factory=_env_float("SCRAPER_BASE_DELAY", "1.0"))
    max_redirects: int = field(default_factory=_env_int("SCRAPER_MAX_REDIRECTS", "5"))
    inter_source_delay: float = field(default_factory=_env_float("SCRAPER_INTER_SOURCE_DELAY", "2.0"))
    # 0 disables the in-memory result cache.
    cache_ttl: float = field(default_factory=_env_float("SCRAPER_CACHE_TTL", "0"))
    skip_failed_urls: bool = field(default_factory=_env_bool("SCRAPER_SKIP_FAILED_URLS"))
    deadline: Optional[float] = field(default_factory=_env_optional_float("SCRAPER_DEADLINE"))

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            timeout=self.timeout,
            max_redirects=self.max_redirects,
        )
