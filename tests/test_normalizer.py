import math

import pytest

from reconflow.config import ReconConfig
from reconflow.parsers.normalizer import (
    RecordNormalizer,
    normalize_reference,
    normalize_status,
    parse_amount,
)
from reconflow.utils.exceptions import MissingColumnsError

COLUMNS = ["transaction_reference", "amount", "status", "customer"]


def test_parse_amount_handles_blank_numeric_and_malformed():
    assert parse_amount(None) is None
    assert parse_amount("   ") is None
    assert parse_amount("12.50") == 12.5
    assert parse_amount(" 0 ") == 0.0
    assert parse_amount("$1,234.56") == 1234.56
    assert parse_amount(7) == 7.0
    assert math.isnan(parse_amount("twelve"))


def test_parse_amount_only_accepts_grouped_thousands_separators():
    assert parse_amount("1,234,567.89") == 1234567.89
    assert parse_amount("-1,000") == -1000.0
    assert parse_amount("$ 42") == 42.0
    assert math.isnan(parse_amount("1,5"))
    assert math.isnan(parse_amount("1,50"))
    assert math.isnan(parse_amount("12,34.5"))
    assert math.isnan(parse_amount("1_000"))
    assert math.isnan(parse_amount("$"))


def test_normalize_reference_trims_and_stringifies():
    assert normalize_reference("  TX-1 ") == "TX-1"
    assert normalize_reference(42) == "42"
    assert normalize_reference(None) == ""
    assert normalize_reference(float("nan")) == ""


def test_normalize_status_lowercases_and_trims():
    assert normalize_status("  PAID ") == "paid"
    assert normalize_status("") is None
    assert normalize_status(None) is None


def test_normalize_keeps_pass_through_columns():
    normalizer = RecordNormalizer()
    record = normalizer.normalize(
        {"transaction_reference": " A1 ", "amount": "10", "status": "Settled", "customer": "acme"},
        row_number=3,
    )

    assert record.reference == "A1"
    assert record.amount == 10.0
    assert record.status == "settled"
    assert record.extra == {"customer": "acme"}
    assert record.row_number == 3


def test_malformed_amount_is_passed_through_as_nan(caplog):
    record = RecordNormalizer().normalize({"transaction_reference": "A1", "amount": "1O.00"})

    assert record is not None
    assert record.has_invalid_amount
    assert "not numeric" in caplog.text


def test_normalize_rows_discards_empty_references():
    rows = [
        {"transaction_reference": "A", "amount": "1", "status": "", "customer": ""},
        {"transaction_reference": "   ", "amount": "2", "status": "", "customer": ""},
        {"transaction_reference": None, "amount": "3", "status": "", "customer": ""},
        {"transaction_reference": "B", "amount": "", "status": "paid", "customer": "x"},
    ]

    records = RecordNormalizer().normalize_rows(COLUMNS, rows)

    assert [r.reference for r in records] == ["A", "B"]
    assert [r.row_number for r in records] == [1, 4]
    assert records[1].amount is None


def test_normalize_rows_requires_reference_column():
    with pytest.raises(MissingColumnsError) as exc_info:
        RecordNormalizer().normalize_rows(["amount", "status"], [{"amount": "1"}], source="bank.csv")

    assert exc_info.value.missing == ["transaction_reference"]
    assert exc_info.value.source == "bank.csv"
    assert "transaction_reference" in str(exc_info.value)


def test_amount_and_status_columns_are_optional():
    records = RecordNormalizer().normalize_rows(
        ["transaction_reference"], [{"transaction_reference": "A"}]
    )
    assert records[0].amount is None
    assert records[0].status is None


def test_column_mappings_rename_core_columns():
    config = ReconConfig()
    config.input.column_mappings.reference = "ref"
    config.input.column_mappings.amount = "total"

    records = RecordNormalizer(config).normalize_rows(
        ["ref", "total", "amount"], [{"ref": "R1", "total": "5", "amount": "other"}]
    )

    assert records[0].reference == "R1"
    assert records[0].amount == 5.0
    assert records[0].extra == {"amount": "other"}
