import math

import pytest

from reconflow.config import ReconConfig
from reconflow.matching.engine import ReconciliationEngine, reconcile
from reconflow.parsers.normalizer import RecordNormalizer
from reconflow.utils.exceptions import DuplicateReferenceError, EmptyInputError


def reject_duplicates_config() -> ReconConfig:
    config = ReconConfig()
    config.matching.settings.duplicate_references = "reject"
    return config


def test_close_amounts_and_case_insensitive_status_match():
    normalizer = RecordNormalizer()
    columns = ["transaction_reference", "amount", "status"]
    internal = normalizer.normalize_rows(
        columns, [{"transaction_reference": "A", "amount": "100.00", "status": "paid"}]
    )
    provider = normalizer.normalize_rows(
        columns, [{"transaction_reference": "A", "amount": "100.005", "status": "PAID"}]
    )

    result = reconcile(internal, provider)

    assert len(result.matched) == 1
    match = result.matched[0]
    assert match.reference == "A"
    assert match.amount_match is True
    assert match.status_match is True
    assert result.amount_mismatches == []
    assert result.status_mismatches == []


def test_disjoint_references_are_one_sided(record):
    internal = [record("A", 100.00), record("C", 1.0)]
    provider = [record("B", 50.00), record("D", 2.0)]

    result = reconcile(internal, provider)

    assert result.matched == []
    assert result.internal_only == internal
    assert result.provider_only == provider


def test_difference_of_exactly_tolerance_is_a_match(record):
    result = reconcile([record("A", 0.01)], [record("A", 0.02)])
    assert result.matched[0].amount_match is True


def test_decimal_inputs_one_cent_apart_match(record):
    # 100.01 - 100.00 is slightly above 0.01 in binary floating point
    result = reconcile([record("A", 100.00)], [record("A", 100.01)])
    assert result.matched[0].amount_match is True


def test_difference_just_over_tolerance_is_a_mismatch(record):
    result = reconcile([record("A", 0.0)], [record("A", 0.0100001)])

    assert result.matched[0].amount_match is False
    assert result.amount_mismatches == result.matched
    assert result.summary.amount_mismatch_count == 1


@pytest.mark.parametrize(
    "internal_amount, provider_amount",
    [(None, 10.0), (10.0, None), (None, None)],
)
def test_missing_amount_never_flags_mismatch(record, internal_amount, provider_amount):
    result = reconcile([record("A", internal_amount)], [record("A", provider_amount)])
    assert result.matched[0].amount_match is True


@pytest.mark.parametrize(
    "internal_status, provider_status",
    [(None, "paid"), ("failed", None), (None, None)],
)
def test_missing_status_never_flags_mismatch(record, internal_status, provider_status):
    result = reconcile(
        [record("A", 1.0, internal_status)], [record("A", 1.0, provider_status)]
    )
    assert result.matched[0].status_match is True
    assert result.status_mismatches == []


def test_status_mismatch_is_reported(record):
    result = reconcile([record("A", 1.0, "paid")], [record("A", 1.0, "refunded")])

    match = result.matched[0]
    assert match.status_match is False
    assert match.amount_match is True
    assert result.status_mismatches == [match]


def test_nan_amount_is_not_a_mismatch_but_is_counted(record):
    internal = [record("A", math.nan), record("B", 5.0)]
    provider = [record("A", 12.0), record("B", math.nan)]

    result = reconcile(internal, provider)

    assert all(m.amount_match for m in result.matched)
    assert result.summary.amount_mismatch_count == 0
    assert result.summary.invalid_amount_count == 2


def test_infinite_amounts_compare_as_floats(record):
    result = reconcile(
        [record("A", math.inf), record("B", math.inf)],
        [record("A", math.inf), record("B", 10.0)],
    )
    assert result.matched[0].amount_match is True
    assert result.matched[1].amount_match is False


def test_mismatch_lists_are_subsequences_of_matched(record):
    internal = [
        record("A", 1.0, "paid"),
        record("B", 2.0, "paid"),
        record("C", 3.0, "paid"),
        record("D", 4.0, "paid"),
    ]
    provider = [
        record("D", 4.5, "void"),
        record("C", 3.0, "void"),
        record("B", 2.5, "paid"),
        record("A", 1.0, "paid"),
    ]

    result = reconcile(internal, provider)

    assert [m.reference for m in result.matched] == ["A", "B", "C", "D"]
    assert [m.reference for m in result.amount_mismatches] == ["B", "D"]
    assert [m.reference for m in result.status_mismatches] == ["C", "D"]
    assert all(m in result.matched for m in result.amount_mismatches)


def test_summary_counts_balance_for_unique_references(record):
    internal = [record("A", 1.0), record("B", 2.0), record("C", 3.0)]
    provider = [record("B", 2.0), record("C", 9.0), record("X", 1.0), record("Y", 1.0)]

    summary = reconcile(internal, provider).summary

    assert summary.total_internal == 3
    assert summary.total_provider == 4
    assert summary.matched_count + summary.internal_only_count == summary.total_internal
    assert summary.matched_count + summary.provider_only_count == summary.total_provider
    assert summary.amount_mismatch_count == 1
    assert summary.match_rate == 50
    assert summary.total_discrepancies == 1 + 2 + 1


def test_reconcile_is_idempotent(record):
    internal = [record("A", 1.0, "paid", note="x"), record("B", 2.0)]
    provider = [record("A", 1.5, "void"), record("C", 3.0)]
    engine = ReconciliationEngine()

    assert engine.reconcile(internal, provider) == engine.reconcile(internal, provider)


def test_duplicate_internal_references_share_last_provider_record(record):
    internal = [record("A", 100.0, "paid", line="first"), record("A", 90.0, "paid", line="second")]
    provider = [record("A", 80.0, "paid", line="old"), record("A", 100.0, "paid", line="new")]

    result = reconcile(internal, provider)

    assert len(result.matched) == 2
    assert all(m.provider.extra["line"] == "new" for m in result.matched)
    assert [m.amount_match for m in result.matched] == [True, False]
    assert result.provider_only == []


def test_duplicate_references_rejected_when_configured(record):
    engine = ReconciliationEngine(reject_duplicates_config())

    with pytest.raises(DuplicateReferenceError) as exc_info:
        engine.reconcile([record("A"), record("A"), record("B")], [record("A")])

    assert exc_info.value.source == "internal"
    assert exc_info.value.references == ["A"]


def test_duplicate_provider_references_rejected_when_configured(record):
    engine = ReconciliationEngine(reject_duplicates_config())

    with pytest.raises(DuplicateReferenceError) as exc_info:
        engine.reconcile([record("A")], [record("B"), record("B")])

    assert exc_info.value.source == "provider"


@pytest.mark.parametrize(
    "internal_refs, provider_refs, sides",
    [([], ["A"], ["internal"]), (["A"], [], ["provider"]), ([], [], ["internal", "provider"])],
)
def test_empty_input_is_rejected(record, internal_refs, provider_refs, sides):
    with pytest.raises(EmptyInputError) as exc_info:
        reconcile([record(r) for r in internal_refs], [record(r) for r in provider_refs])
    assert exc_info.value.sides == sides


def test_configured_tolerance_is_used(record):
    config = ReconConfig()
    config.matching.settings.amount_tolerance = 1.0

    result = ReconciliationEngine(config).reconcile(
        [record("A", 10.0), record("B", 10.0)], [record("A", 11.0), record("B", 11.5)]
    )

    assert [m.amount_match for m in result.matched] == [True, False]


def test_status_comparison_can_be_disabled(record):
    config = ReconConfig()
    config.matching.settings.compare_status = False

    result = ReconciliationEngine(config).reconcile(
        [record("A", 1.0, "paid")], [record("A", 1.0, "failed")]
    )

    assert result.matched[0].status_match is True
    assert result.status_mismatches == []
