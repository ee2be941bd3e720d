"""
Reference-keyed reconciliation engine.
Classifies internal and provider records into matched and one-sided sets.
"""

from collections import Counter
from collections.abc import Sequence
from decimal import Decimal
from typing import Optional
import logging

from ..config import ReconConfig
from ..models.record import (
    MatchResult,
    NormalizedRecord,
    ReconciliationResult,
    ReconciliationSummary,
    RecordSource,
)
from ..utils.exceptions import DuplicateReferenceError, EmptyInputError
from .comparison import amounts_match, statuses_match

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """
    Matches two record sets by transaction reference.

    The engine keeps no state between runs: calling ``reconcile`` twice with
    the same inputs gives equal results.
    """

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration (defaults when omitted)
        """
        self.config = config or ReconConfig()
        settings = self.config.matching.settings
        self.amount_tolerance = Decimal(str(settings.amount_tolerance))
        self.duplicate_policy = settings.duplicate_references
        self.compare_status = settings.compare_status

    def reconcile(
        self,
        internal_records: Sequence[NormalizedRecord],
        provider_records: Sequence[NormalizedRecord],
    ) -> ReconciliationResult:
        """
        Perform reconciliation between internal and provider records.

        Args:
            internal_records: Records from the internal export
            provider_records: Records from the provider statement

        Returns:
            Classified result with summary counts

        Raises:
            EmptyInputError: If either side has no records
            DuplicateReferenceError: If a side repeats a reference and the
                duplicate policy is ``reject``
        """
        internal_records = list(internal_records)
        provider_records = list(provider_records)

        empty = [
            source.value
            for source, records in (
                (RecordSource.INTERNAL, internal_records),
                (RecordSource.PROVIDER, provider_records),
            )
            if not records
        ]
        if empty:
            raise EmptyInputError(empty)

        logger.info(
            f"Starting reconciliation: {len(internal_records)} internal, "
            f"{len(provider_records)} provider records"
        )

        if self.duplicate_policy == "reject":
            self._check_unique(internal_records, RecordSource.INTERNAL)
            self._check_unique(provider_records, RecordSource.PROVIDER)

        # Later records overwrite earlier ones with the same reference
        provider_index = {r.reference: r for r in provider_records}
        internal_index = {r.reference: r for r in internal_records}

        matched: list[MatchResult] = []
        internal_only: list[NormalizedRecord] = []
        amount_mismatches: list[MatchResult] = []
        status_mismatches: list[MatchResult] = []

        for internal_record in internal_records:
            provider_record = provider_index.get(internal_record.reference)
            if provider_record is None:
                internal_only.append(internal_record)
                continue

            match = self._compare(internal_record, provider_record)
            if not match.amount_match:
                amount_mismatches.append(match)
                logger.debug(
                    f"{match.reference}: amount {internal_record.amount} "
                    f"vs {provider_record.amount}"
                )
            if not match.status_match:
                status_mismatches.append(match)
                logger.debug(
                    f"{match.reference}: status {internal_record.status!r} "
                    f"vs {provider_record.status!r}"
                )
            matched.append(match)

        provider_only = [
            r for r in provider_records if r.reference not in internal_index
        ]

        invalid_amounts = sum(
            1 for r in internal_records + provider_records if r.has_invalid_amount
        )
        if invalid_amounts:
            logger.warning(
                f"{invalid_amounts} records have non-numeric amounts; "
                "they were not compared on amount"
            )

        summary = ReconciliationSummary(
            total_internal=len(internal_records),
            total_provider=len(provider_records),
            matched_count=len(matched),
            internal_only_count=len(internal_only),
            provider_only_count=len(provider_only),
            amount_mismatch_count=len(amount_mismatches),
            status_mismatch_count=len(status_mismatches),
            invalid_amount_count=invalid_amounts,
        )

        logger.info(
            f"Reconciliation complete: {summary.matched_count} matched, "
            f"{summary.internal_only_count} internal-only, "
            f"{summary.provider_only_count} provider-only, "
            f"{summary.amount_mismatch_count} amount and "
            f"{summary.status_mismatch_count} status mismatches"
        )

        return ReconciliationResult(
            matched=matched,
            internal_only=internal_only,
            provider_only=provider_only,
            amount_mismatches=amount_mismatches,
            status_mismatches=status_mismatches,
            summary=summary,
        )

    def _compare(
        self, internal_record: NormalizedRecord, provider_record: NormalizedRecord
    ) -> MatchResult:
        """Build the match result for one reference found on both sides."""
        status_ok = True
        if self.compare_status:
            status_ok = statuses_match(internal_record.status, provider_record.status)

        return MatchResult(
            reference=internal_record.reference,
            internal=internal_record,
            provider=provider_record,
            amount_match=amounts_match(
                internal_record.amount, provider_record.amount, self.amount_tolerance
            ),
            status_match=status_ok,
        )

    def _check_unique(
        self, records: list[NormalizedRecord], source: RecordSource
    ) -> None:
        counts = Counter(r.reference for r in records)
        duplicates = [ref for ref, count in counts.items() if count > 1]
        if duplicates:
            logger.error(f"{source.value}: {len(duplicates)} duplicated references")
            raise DuplicateReferenceError(source.value, duplicates)


def reconcile(
    internal_records: Sequence[NormalizedRecord],
    provider_records: Sequence[NormalizedRecord],
    config: Optional[ReconConfig] = None,
) -> ReconciliationResult:
    """Reconcile two record sequences with a throwaway engine."""
    return ReconciliationEngine(config).reconcile(internal_records, provider_records)
