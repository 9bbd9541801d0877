import threading

import pytest

from newsharvest.errors import DeadlineExceeded
from newsharvest.fetchers.retry import with_retries
from newsharvest.models import RetryPolicy
from newsharvest.utils.deadline import Deadline


def test_unbounded_deadline():
    deadline = Deadline()

    assert deadline.remaining() is None
    assert not deadline.expired
    assert deadline.clamp(15) == 15


def test_zero_budget_is_expired():
    deadline = Deadline.after(0)

    assert deadline.expired
    assert deadline.clamp(15) == 0
    assert deadline.sleep(1) is False


def test_cancel_event_interrupts_sleep():
    event = threading.Event()
    deadline = Deadline(60, cancel_event=event)
    threading.Timer(0.05, event.set).start()

    assert deadline.sleep(30) is False
    assert deadline.cancelled and deadline.expired


def test_sleep_completes_within_budget():
    assert Deadline(5).sleep(0.01) is True


def test_retry_stops_when_cancelled_between_attempts():
    deadline = Deadline()
    calls = []

    def flaky(attempt):
        calls.append(attempt)
        deadline.cancel()
        raise OSError("down")

    with pytest.raises(DeadlineExceeded):
        with_retries(flaky, policy=RetryPolicy(max_attempts=3, base_delay=0), deadline=deadline, label="GET x")

    assert calls == [1]


def test_retry_does_not_catch_unlisted_exceptions():
    calls = []

    def broken(attempt):
        calls.append(attempt)
        raise KeyError("bug")

    with pytest.raises(KeyError):
        with_retries(broken, policy=RetryPolicy(max_attempts=3, base_delay=0), retry_on=(OSError,))

    assert calls == [1]
