"""Data models for reconciliation."""

from .record import (
    REFERENCE_FIELD,
    ExportKind,
    NormalizedRecord,
    RecordSource,
    MatchResult,
    ReconciliationResult,
    ReconciliationSummary,
)

__all__ = [
    "REFERENCE_FIELD",
    "ExportKind",
    "NormalizedRecord",
    "RecordSource",
    "MatchResult",
    "ReconciliationResult",
    "ReconciliationSummary",
]
