from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple
from urllib.parse import urlparse

import soupsieve
import yaml

from ..errors import ConfigError
from ..models import CATEGORIES, MAX_CONTAINERS, ExtractionRuleset, SourceDescriptor
from ..processors.fallback import DEFAULT_KEYWORDS

REQUIRED_FIELDS = {"name", "url", "category", "selectors"}

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "sources.yaml"


@dataclass(frozen=True, slots=True)
class SourcesConfig:
    sources: Tuple[SourceDescriptor, ...]
    fallback_keywords: Tuple[str, ...] = field(default=DEFAULT_KEYWORDS)


def _selector_chain(value, *, where: str, required: bool) -> Tuple[str, ...]:
    """Accept a list of selectors or a comma-separated string of them."""
    if value is None:
        value = []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise ConfigError(f"{where} must be a list of CSS selectors or a comma-separated string")
    chain = tuple(s.strip() for s in value if s.strip())
    if required and not chain:
        raise ConfigError(f"{where} must contain at least one selector")
    _compile_chain(chain, where=where)
    return chain


def _compile_chain(chain: Iterable[str], *, where: str) -> None:
    for selector in chain:
        try:
            soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError as exc:
            raise ConfigError(f"Invalid CSS selector {selector!r} in {where}: {exc}") from exc


def _validate_source_dict(entry: dict) -> None:
    """Validate a single source mapping from YAML.

    Required fields: name (str), url (http/https, may hold ``{query}``),
    category (news | government | social), selectors (mapping with a
    non-empty ``articles`` chain).
    Optional fields:
      - max_containers: int between 1 and 10
      - headers: mapping[str, str]
    """
    missing = REQUIRED_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {entry}")

    if not str(entry["name"]).strip():
        raise ConfigError("Source 'name' must not be empty")

    url_str = str(entry["url"]).strip()
    parsed = urlparse(url_str.replace("{query}", ""))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid URL '{url_str}'. Must be absolute http(s) URL.")

    if entry["category"] not in CATEGORIES:
        raise ConfigError(f"Invalid category '{entry['category']}'. Allowed: {list(CATEGORIES)}")

    if not isinstance(entry["selectors"], dict):
        raise ConfigError(f"'selectors' must be a mapping for source {entry['name']}")

    if "max_containers" in entry and entry["max_containers"] is not None:
        value = entry["max_containers"]
        if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= MAX_CONTAINERS:
            raise ConfigError(f"'max_containers' must be an integer between 1 and {MAX_CONTAINERS}")

    if "headers" in entry and entry["headers"] is not None:
        headers = entry["headers"]
        if not isinstance(headers, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in headers.items()):
            raise ConfigError("'headers' must be a mapping of string keys to string values if provided")


def _coerce_source(entry: dict) -> SourceDescriptor:
    name = str(entry["name"]).strip()
    selectors = entry["selectors"]
    ruleset = ExtractionRuleset(
        article_containers=_selector_chain(selectors.get("articles"), where=f"{name}.selectors.articles", required=True),
        title=_selector_chain(selectors.get("title"), where=f"{name}.selectors.title", required=False),
        content=_selector_chain(selectors.get("content"), where=f"{name}.selectors.content", required=False),
        max_containers=entry.get("max_containers") or MAX_CONTAINERS,
    )
    headers = entry.get("headers") or {}
    return SourceDescriptor(
        name=name,
        url=str(entry["url"]).strip(),
        category=entry["category"],
        ruleset=ruleset,
        headers={str(k): str(v) for k, v in headers.items()},
    )


def validate_sources(sources: Sequence[SourceDescriptor]) -> None:
    """Startup checks on a source list built in code or loaded from YAML."""
    if not sources:
        raise ConfigError("No sources configured")
    seen = set()
    for source in sources:
        if not isinstance(source, SourceDescriptor):
            raise ConfigError(f"Expected SourceDescriptor, got: {type(source)}")
        if not source.name:
            raise ConfigError("Source 'name' must not be empty")
        if source.name in seen:
            raise ConfigError(f"Duplicate source name: {source.name}")
        seen.add(source.name)
        if source.category not in CATEGORIES:
            raise ConfigError(f"Invalid category '{source.category}' for {source.name}")
        if not source.ruleset.article_containers:
            raise ConfigError(f"Source {source.name} has no article container selectors")
        for part in ("article_containers", "title", "content"):
            _compile_chain(getattr(source.ruleset, part), where=f"{source.name}.{part}")
        parsed = urlparse(source.url.replace("{query}", ""))
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid URL '{source.url}' for {source.name}")


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> SourcesConfig:
    """Load ``sources.yaml`` into a :class:`SourcesConfig`.

    YAML structure:
      - ``fallback_keywords``: list[string] (optional) used by the generic
        fallback pass to judge relevance
      - ``sources``: non-empty list of mappings with
          - name: string (required, unique)
          - url: http/https URL, optionally with a ``{query}`` placeholder
          - category: 'news' | 'government' | 'social'
          - selectors: {articles, title, content}, each a list or a
            comma-separated string; ``articles`` is required
          - max_containers: int 1-10 (optional, default 10)
          - headers: mapping[string, string] (optional)

    Unknown top-level keys are ignored for forward compatibility.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Top level of the sources configuration must be a mapping")

    sources_raw: Iterable[dict] = data.get("sources") or []
    if not isinstance(sources_raw, list):
        raise ConfigError("'sources' must be a list in the YAML configuration")

    sources: List[SourceDescriptor] = []
    for item in sources_raw:
        if not isinstance(item, dict):
            raise ConfigError(f"Each source must be a mapping, got: {type(item)}")
        _validate_source_dict(item)
        sources.append(_coerce_source(item))
    validate_sources(sources)

    keywords = data.get("fallback_keywords")
    if keywords is None:
        return SourcesConfig(sources=tuple(sources))
    if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
        raise ConfigError("'fallback_keywords' must be a list of strings if provided")
    return SourcesConfig(sources=tuple(sources), fallback_keywords=tuple(k.strip().lower() for k in keywords if k.strip()))


def load_sources_config(path: Path | str = DEFAULT_CONFIG_PATH) -> List[SourceDescriptor]:
    return list(load_config(path).sources)
