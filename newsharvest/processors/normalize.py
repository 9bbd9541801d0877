"""Text clean-up for strings lifted out of scraped markup."""

from __future__ import annotations

import re
import unicodedata
from typing import List

# Typographic quotes and dashes folded to ASCII; NBSP becomes a plain space.
_PUNCT = str.maketrans({
    "\u2018": "'",
    "\u2019": "'",
    "\u201C": '"',
    "\u201D": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u00A0": " ",
    "\ufeff": None,
})
_NOISE_RE = re.compile(r"[\u0000-\u001F\u007F\s]+")


def normalize_plain_text(text: str | None) -> str:
    """Fold punctuation, apply NFKC and collapse every run of whitespace or
    control characters into a single space."""
    if not text:
        return ""
    text = unicodedata.normalize("NFKC", text.translate(_PUNCT))
    return _NOISE_RE.sub(" ", text).strip()


def text_lines(raw_text: str | None, *, min_length: int = 0) -> List[str]:
    """Split text into normalized, non-empty lines of at least ``min_length`` chars."""
    if not raw_text:
        return []
    lines = (normalize_plain_text(line) for line in raw_text.splitlines())
    return [line for line in lines if line and len(line) >= min_length]


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters and trim the result."""
    return text[:limit].strip()
