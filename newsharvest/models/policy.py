from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry settings for one fetch.

    The wait before attempt ``n + 1`` is ``base_delay * n`` seconds, so waits
    grow linearly with the attempt number.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    timeout: float = 15.0
    max_redirects: int = 5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.timeout <= 0:
            raise ValueError("base_delay must be >= 0 and timeout > 0")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt
