"""Typed models used across the extractor."""

from .source import CATEGORIES, MAX_CONTAINERS, Category, ExtractionRuleset, SourceDescriptor
from .record import AggregationResult, RawCandidate, Record, SourceOutcome
from .policy import RetryPolicy

__all__ = [
    "CATEGORIES",
    "MAX_CONTAINERS",
    "Category",
    "ExtractionRuleset",
    "SourceDescriptor",
    "RawCandidate",
    "Record",
    "SourceOutcome",
    "AggregationResult",
    "RetryPolicy",
]
