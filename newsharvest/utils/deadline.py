from __future__ import annotations

import threading
import time
from typing import Optional


class Deadline:
    """Overall time budget for a scrape, optionally tied to a cancel event.

    Sleeps go through :meth:`sleep` so that cancellation or expiry interrupts
    them instead of waiting out the full delay.
    """

    def __init__(self, seconds: Optional[float] = None, *, cancel_event: Optional[threading.Event] = None) -> None:
        self._expires_at = time.monotonic() + seconds if seconds is not None else None
        self._event = cancel_event or threading.Event()

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left, or ``None`` when there is no time limit."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        if self.cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def clamp(self, timeout: float) -> float:
        remaining = self.remaining()
        return timeout if remaining is None else min(timeout, remaining)

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return False if interrupted by expiry or cancel."""
        if seconds <= 0:
            return not self.expired
        if self._event.wait(self.clamp(seconds)):
            return False
        return not self.expired
