from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from .source import Category

OutcomeStatus = Literal["succeeded", "failed", "skipped"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class RawCandidate:
    """An unvalidated title/content pair lifted from one container."""

    title: str
    content: str
    url: Optional[str] = None
    extracted_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True)
class Record:
    title: str
    content: str
    source: str
    category: Category
    retrieved_at: datetime
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "content": self.content,
            "source": self.source,
            "category": self.category,
            "retrieved_at": self.retrieved_at.isoformat(),
            "url": self.url,
        }


@dataclass(slots=True)
class SourceOutcome:
    """What happened to one source during a scrape."""

    source: str
    category: Category
    status: OutcomeStatus
    records: int = 0
    # Fetch attempts made; 0 when the source was skipped or never fetched.
    attempts: int = 0
    error: Optional[BaseException] = None
    used_fallback: bool = False
    warnings: List[str] = field(default_factory=list)

    def copy(self) -> "SourceOutcome":
        """Detached copy; the warnings list is not shared."""
        return replace(self, warnings=list(self.warnings))

    @property
    def error_class(self) -> Optional[str]:
        return type(self.error).__name__ if self.error is not None else None

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "category": self.category,
            "status": self.status,
            "records": self.records,
            "attempts": self.attempts,
            "error_class": self.error_class,
            "error": str(self.error) if self.error is not None else None,
            "used_fallback": self.used_fallback,
            "warnings": list(self.warnings),
        }


@dataclass(slots=True)
class AggregationResult:
    records: List[Record] = field(default_factory=list)
    outcomes: List[SourceOutcome] = field(default_factory=list)
    category_errors: Dict[str, BaseException] = field(default_factory=dict)
    deadline_exceeded: bool = False

    @property
    def succeeded(self) -> List[str]:
        return [o.source for o in self.outcomes if o.status == "succeeded"]

    @property
    def failures(self) -> Dict[str, BaseException]:
        return {o.source: o.error for o in self.outcomes if o.error is not None}

    def to_dict(self) -> dict:
        return {
            "records": [r.to_dict() for r in self.records],
            "sources": [o.to_dict() for o in self.outcomes],
            "category_errors": {k: f"{type(v).__name__}: {v}" for k, v in self.category_errors.items()},
            "deadline_exceeded": self.deadline_exceeded,
        }
