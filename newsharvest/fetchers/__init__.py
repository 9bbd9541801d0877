"""Transport layer: HTTP fetching with retries."""

from .http import USER_AGENTS, build_headers, fetch_html
from .retry import with_retries

__all__ = ["USER_AGENTS", "build_headers", "fetch_html", "with_retries"]
