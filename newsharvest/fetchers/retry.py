from __future__ import annotations

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from ..errors import DeadlineExceeded
from ..models import RetryPolicy
from ..utils.deadline import Deadline
from ..utils.logging import get_logger

T = TypeVar("T")
logger = get_logger("nh.fetchers.retry")


def with_retries(
    fn: Callable[[int], T],
    *,
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    deadline: Optional[Deadline] = None,
    label: str = "call",
) -> T:
    """Call ``fn(attempt)`` until it succeeds or ``policy.max_attempts`` is reached.

    Waits ``policy.base_delay * attempt`` seconds after a failed attempt.
    Exceptions outside ``retry_on`` propagate immediately; after the last
    attempt the final exception is re-raised.
    """
    last_exc: BaseException | None = None
    for attempt in range(1, policy.max_attempts + 1):
        if deadline is not None and deadline.expired:
            raise DeadlineExceeded(f"{label} attempt {attempt}") from last_exc
        try:
            return fn(attempt)
        except retry_on as exc:
            last_exc = exc
            if attempt >= policy.max_attempts:
                break
            sleep_s = policy.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %s/%s): %s; retrying in %.1fs",
                label, attempt, policy.max_attempts, exc, sleep_s,
            )
            if deadline is None:
                time.sleep(sleep_s)
            elif not deadline.sleep(sleep_s):
                raise DeadlineExceeded(f"{label} attempt {attempt + 1}") from exc
    assert last_exc is not None
    raise last_exc
