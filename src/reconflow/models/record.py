"""Data models for reconciliation records and results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union
import math

REFERENCE_FIELD = "transaction_reference"


class RecordSource(Enum):
    """Which uploaded file a record came from."""

    INTERNAL = "internal"
    PROVIDER = "provider"


class ExportKind(Enum):
    """Result subsets that can be exported."""

    MATCHED = "matched"
    INTERNAL_ONLY = "internal_only"
    PROVIDER_ONLY = "provider_only"
    AMOUNT_MISMATCHES = "amount_mismatches"
    STATUS_MISMATCHES = "status_mismatches"

    @property
    def is_two_sided(self) -> bool:
        """True for subsets made of MatchResult rows."""
        return self not in (ExportKind.INTERNAL_ONLY, ExportKind.PROVIDER_ONLY)


@dataclass
class NormalizedRecord:
    """
    Canonical form of one CSV row.

    Both input files are normalized into this structure so the engine can
    compare them by reference.
    """

    # Trimmed transaction reference, never empty
    reference: str

    # None when the column is absent or blank, NaN when the text is not numeric
    amount: Optional[float] = None

    # Lowercased and trimmed
    status: Optional[str] = None

    # Every other column from the source row, untouched
    extra: dict[str, Any] = field(default_factory=dict)

    # 1-based position among the data rows of the source file
    row_number: Optional[int] = None

    @property
    def has_invalid_amount(self) -> bool:
        """Amount text was present but could not be parsed."""
        return self.amount is not None and math.isnan(self.amount)

    def to_row(
        self,
        reference_field: str = REFERENCE_FIELD,
        amount_field: str = "amount",
        status_field: str = "status",
    ) -> dict[str, Any]:
        """
        Flatten back into a CSV-ready mapping.

        The field names should be the column names the record was read with,
        so pass-through columns keep their own headers.
        """
        row: dict[str, Any] = {
            reference_field: self.reference,
            amount_field: self.amount,
            status_field: self.status,
        }
        for key, value in self.extra.items():
            row.setdefault(key, value)
        return row


@dataclass
class MatchResult:
    """A reference found on both sides, with per-dimension agreement flags."""

    reference: str
    internal: NormalizedRecord
    provider: NormalizedRecord
    amount_match: bool = True
    status_match: bool = True

    @property
    def is_clean(self) -> bool:
        return self.amount_match and self.status_match

    @property
    def amount_difference(self) -> Optional[float]:
        """Internal minus provider amount, when both are known."""
        if self.internal.amount is None or self.provider.amount is None:
            return None
        return self.internal.amount - self.provider.amount


@dataclass
class ReconciliationSummary:
    """Counts describing one reconciliation run."""

    total_internal: int
    total_provider: int
    matched_count: int
    internal_only_count: int
    provider_only_count: int
    amount_mismatch_count: int
    status_mismatch_count: int
    invalid_amount_count: int = 0

    @property
    def match_rate(self) -> int:
        """Matched records as a whole percentage of the larger input."""
        denominator = max(self.total_internal, self.total_provider)
        if denominator == 0:
            return 0
        return round(self.matched_count / denominator * 100)

    @property
    def total_discrepancies(self) -> int:
        return (
            self.internal_only_count
            + self.provider_only_count
            + self.amount_mismatch_count
            + self.status_mismatch_count
        )


@dataclass
class ReconciliationResult:
    """Classified output of a reconciliation run."""

    matched: list[MatchResult]
    internal_only: list[NormalizedRecord]
    provider_only: list[NormalizedRecord]
    amount_mismatches: list[MatchResult]
    status_mismatches: list[MatchResult]
    summary: ReconciliationSummary

    def subset(
        self, kind: ExportKind
    ) -> Union[list[MatchResult], list[NormalizedRecord]]:
        """Return the collection backing an export kind."""
        return {
            ExportKind.MATCHED: self.matched,
            ExportKind.INTERNAL_ONLY: self.internal_only,
            ExportKind.PROVIDER_ONLY: self.provider_only,
            ExportKind.AMOUNT_MISMATCHES: self.amount_mismatches,
            ExportKind.STATUS_MISMATCHES: self.status_mismatches,
        }[kind]
