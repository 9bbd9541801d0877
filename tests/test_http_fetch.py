"""Tests for the HTTP transport: headers, acceptance rules and linear retry."""

import socket
import threading
import time
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from newsharvest.errors import ConfigError, DeadlineExceeded, TransportError
from newsharvest.fetchers.http import USER_AGENTS, _new_session, build_headers, fetch_html
from newsharvest.models import RetryPolicy
from newsharvest.utils.deadline import Deadline

URL = "https://www.example.co.ke/kenya/news"
GOOD_BODY = "<html><body>" + "x" * 200 + "</body></html>"


def _response(status: int = 200, text: str = GOOD_BODY) -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.encoding = "utf-8"
    data = text.encode("utf-8")
    resp.iter_content.return_value = [data[i:i + 64] for i in range(0, len(data), 64)]
    return resp


@pytest.fixture
def session():
    mock_session = MagicMock()
    with patch("newsharvest.fetchers.http._new_session", return_value=mock_session):
        yield mock_session


@pytest.fixture
def sleeps():
    recorded = []
    with patch("newsharvest.fetchers.retry.time.sleep", side_effect=recorded.append):
        yield recorded


class TestFetchHtml:
    def test_returns_body_on_first_success(self, session, sleeps):
        session.get.return_value = _response()

        assert fetch_html(URL) == GOOD_BODY
        assert session.get.call_count == 1
        assert sleeps == []

    def test_request_uses_browser_headers_timeout_and_redirects(self, session, sleeps):
        session.get.return_value = _response()

        fetch_html(URL, policy=RetryPolicy(timeout=7), headers={"X-Extra": "1"})

        _, kwargs = session.get.call_args
        headers = kwargs["headers"]
        assert headers["User-Agent"] in USER_AGENTS
        assert headers["Referer"] == "https://www.example.co.ke"
        assert headers["Accept-Language"].startswith("en-US")
        assert headers["X-Extra"] == "1"
        assert kwargs["timeout"] == 7
        assert kwargs["allow_redirects"] is True
        assert kwargs["stream"] is True
        session.get.return_value.close.assert_called_once()
        session.close.assert_called_once()

    def test_reports_each_attempt(self, session, sleeps):
        session.get.side_effect = [requests.ConnectionError("refused"), _response()]
        attempts = []

        fetch_html(URL, policy=RetryPolicy(max_attempts=3, base_delay=0), on_attempt=attempts.append)

        assert attempts == [1, 2]

    def test_error_status_body_is_not_read(self, session, sleeps):
        resp = _response(status=404)
        session.get.return_value = resp

        with pytest.raises(TransportError, match="HTTP 404"):
            fetch_html(URL, policy=RetryPolicy(max_attempts=1))
        resp.iter_content.assert_not_called()

    def test_retries_with_linear_backoff_then_succeeds(self, session, sleeps):
        session.get.side_effect = [requests.Timeout("slow"), requests.ConnectionError("refused"), _response()]

        assert fetch_html(URL, policy=RetryPolicy(max_attempts=3, base_delay=1.0)) == GOOD_BODY
        assert sleeps == [1.0, 2.0]

    def test_raises_transport_error_after_exhausting_attempts(self, session, sleeps):
        session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(TransportError) as excinfo:
            fetch_html(URL, policy=RetryPolicy(max_attempts=3, base_delay=1.0))

        err = excinfo.value
        assert err.url == URL
        assert err.attempts == 3
        assert isinstance(err.cause, requests.Timeout)
        assert URL in str(err)
        assert session.get.call_count == 3

    def test_backoff_waits_never_decrease(self, session, sleeps):
        session.get.side_effect = requests.ConnectionError("down")

        with pytest.raises(TransportError):
            fetch_html(URL, policy=RetryPolicy(max_attempts=5, base_delay=0.5))

        assert len(sleeps) == 4
        assert all(later >= earlier for earlier, later in zip(sleeps, sleeps[1:]))
        assert sleeps == [0.5, 1.0, 1.5, 2.0]

    def test_error_status_is_a_failed_attempt(self, session, sleeps):
        session.get.return_value = _response(status=503)

        with pytest.raises(TransportError, match="HTTP 503"):
            fetch_html(URL, policy=RetryPolicy(max_attempts=2, base_delay=0))

        assert session.get.call_count == 2

    def test_redirect_status_is_accepted(self, session, sleeps):
        session.get.return_value = _response(status=304)

        assert fetch_html(URL) == GOOD_BODY

    def test_short_body_is_a_failed_attempt(self, session, sleeps):
        session.get.return_value = _response(text="<html></html>")

        with pytest.raises(TransportError, match="too short"):
            fetch_html(URL, policy=RetryPolicy(max_attempts=1))

    def test_body_of_exactly_100_chars_is_rejected(self, session, sleeps):
        session.get.return_value = _response(text="y" * 100)

        with pytest.raises(TransportError):
            fetch_html(URL, policy=RetryPolicy(max_attempts=1))

    def test_invalid_url_is_a_config_error(self, session):
        with pytest.raises(ConfigError):
            fetch_html("ftp://example.com/file")
        session.get.assert_not_called()

    def test_cancelled_deadline_stops_before_any_request(self, session):
        deadline = Deadline()
        deadline.cancel()

        with pytest.raises(DeadlineExceeded):
            fetch_html(URL, deadline=deadline)
        session.get.assert_not_called()

    def test_timeout_is_clamped_to_deadline(self, session):
        session.get.return_value = _response()

        fetch_html(URL, policy=RetryPolicy(timeout=15), deadline=Deadline(2))

        _, kwargs = session.get.call_args
        assert 0 < kwargs["timeout"] <= 2


def test_session_follows_at_most_five_redirects():
    session = _new_session(5)
    try:
        assert session.max_redirects == 5
    finally:
        session.close()


def test_build_headers_rotates_user_agents():
    seen = {build_headers(URL)["User-Agent"] for _ in range(200)}
    assert seen <= set(USER_AGENTS)
    assert len(seen) > 1


def test_retry_policy_delay_grows_linearly():
    policy = RetryPolicy(base_delay=1.0)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]


def test_retry_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


@pytest.fixture
def trickling_server(monkeypatch):
    """Local HTTP server that sends a 400-byte body one byte every 0.3s."""
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    listener.settimeout(10)
    stop = threading.Event()

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            conn.recv(65536)
            conn.sendall(b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\nContent-Length: 400\r\n\r\n")
            for _ in range(400):
                if stop.wait(0.3):
                    return
                try:
                    conn.sendall(b"x")
                except OSError:
                    return

    threading.Thread(target=serve, daemon=True).start()
    yield f"http://127.0.0.1:{listener.getsockname()[1]}/"
    stop.set()
    listener.close()


def test_deadline_cuts_off_a_trickling_response(trickling_server):
    started = time.monotonic()

    with pytest.raises(DeadlineExceeded):
        fetch_html(trickling_server, policy=RetryPolicy(max_attempts=1, timeout=15), deadline=Deadline(1.0))

    assert time.monotonic() - started < 3


def test_policy_timeout_bounds_the_whole_attempt(trickling_server):
    started = time.monotonic()

    with pytest.raises(TransportError, match="No complete response"):
        fetch_html(trickling_server, policy=RetryPolicy(max_attempts=1, timeout=1.0))

    assert time.monotonic() - started < 3
