from __future__ import annotations

import random
import threading
import time
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

import requests

from ..errors import ConfigError, DeadlineExceeded, TransportError
from ..models import RetryPolicy
from ..utils.deadline import Deadline
from ..utils.logging import get_logger
from .retry import with_retries

logger = get_logger("nh.fetchers.http")

# Responses at or below this many characters are treated as failures.
MIN_BODY_LENGTH = 100
CHUNK_SIZE = 8192
# How often a waiting caller looks at the deadline's cancel flag.
WAIT_SLICE = 0.1

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:109.0) Gecko/20100101 Firefox/121.0",
)

_DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}


class RejectedResponse(Exception):
    """A response arrived but is not usable (error status, near-empty body or too slow)."""


class _Download(threading.Thread):
    """One streamed GET, run off the caller's thread.

    A socket timeout only bounds each read, so a server that trickles bytes
    can hold a request open indefinitely. The caller waits on this thread
    with its own limit instead and abandons it when the limit passes; the
    thread stops at the next chunk boundary.
    """

    def __init__(self, url: str, headers: Dict[str, str], timeout: float, max_redirects: int) -> None:
        super().__init__(name="nh-fetch", daemon=True)
        self.url = url
        self.headers = headers
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.status_code: Optional[int] = None
        self.body: Optional[str] = None
        self.error: Optional[BaseException] = None
        self._abandoned = threading.Event()

    def abandon(self) -> None:
        self._abandoned.set()

    def run(self) -> None:
        session = _new_session(self.max_redirects)
        try:
            resp = session.get(
                self.url, headers=self.headers, timeout=self.timeout, allow_redirects=True, stream=True
            )
            try:
                self.status_code = resp.status_code
                if resp.status_code >= 400:
                    return
                chunks: List[bytes] = []
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if self._abandoned.is_set():
                        return
                    chunks.append(chunk)
                self.body = _decode(b"".join(chunks), resp.encoding)
            finally:
                resp.close()
        except Exception as exc:  # noqa: BLE001 - re-raised on the caller's thread
            self.error = exc
        finally:
            session.close()


def _decode(raw: bytes, encoding: Optional[str]) -> str:
    try:
        return raw.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def _wait_for(download: _Download, budget: float, deadline: Optional[Deadline]) -> bool:
    """Wait up to ``budget`` seconds; False if the download is still running."""
    give_up_at = time.monotonic() + budget
    while download.is_alive():
        left = give_up_at - time.monotonic()
        if left <= 0 or (deadline is not None and deadline.cancelled):
            return False
        download.join(min(left, WAIT_SLICE))
    return True


def _validated_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid URL for HTTP fetch: {url}")
    return url


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def build_headers(url: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Browser-like headers with a rotated user agent and the URL's origin as referer."""
    return {
        **_DEFAULT_HEADERS,
        "User-Agent": random.choice(USER_AGENTS),
        "Referer": origin_of(url),
        **(extra or {}),
    }


def _new_session(max_redirects: int) -> requests.Session:
    session = requests.Session()
    session.max_redirects = max_redirects
    return session


def fetch_html(
    url: str,
    *,
    policy: RetryPolicy = RetryPolicy(),
    headers: Optional[Dict[str, str]] = None,
    deadline: Optional[Deadline] = None,
    on_attempt: Optional[Callable[[int], None]] = None,
) -> str:
    """GET ``url`` and return the body text, retrying with linear backoff.

    ``policy.timeout`` bounds each whole attempt, body included, and the
    deadline bounds the call; an attempt still running when either runs out
    is abandoned. ``on_attempt`` is called with the attempt number before
    each request.

    Raises ``TransportError`` once all attempts failed, ``DeadlineExceeded``
    when the deadline expires first and ``ConfigError`` for a malformed URL.
    """
    url = _validated_url(url)

    def _attempt(attempt: int) -> str:
        budget = deadline.clamp(policy.timeout) if deadline is not None else policy.timeout
        if budget <= 0:
            raise DeadlineExceeded(f"GET {url}")
        if on_attempt is not None:
            on_attempt(attempt)
        logger.debug("Fetching %s (attempt %s/%s, timeout=%.1fs)", url, attempt, policy.max_attempts, budget)
        download = _Download(url, build_headers(url, headers), budget, policy.max_redirects)
        download.start()
        if not _wait_for(download, budget, deadline):
            download.abandon()
            if deadline is not None and deadline.expired:
                raise DeadlineExceeded(f"GET {url}")
            raise RejectedResponse(f"No complete response within {budget:.1f}s")
        if download.error is not None:
            raise download.error
        if download.status_code >= 400:
            raise RejectedResponse(f"HTTP {download.status_code}")
        body = download.body or ""
        if len(body) <= MIN_BODY_LENGTH:
            raise RejectedResponse(f"Response too short or empty ({len(body)} chars)")
        logger.debug("Fetched %s (%d chars)", url, len(body))
        return body

    try:
        return with_retries(
            _attempt,
            policy=policy,
            retry_on=(requests.RequestException, RejectedResponse),
            deadline=deadline,
            label=f"GET {url}",
        )
    except (requests.RequestException, RejectedResponse) as exc:
        if deadline is not None and deadline.expired:
            raise DeadlineExceeded(f"GET {url}") from exc
        logger.warning("Giving up on %s after %d attempt(s): %s", url, policy.max_attempts, exc)
        raise TransportError(url, exc, attempts=policy.max_attempts) from exc
