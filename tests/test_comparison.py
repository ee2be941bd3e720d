import math
from decimal import Decimal

from reconflow.matching.comparison import amounts_match, statuses_match


def test_amounts_within_default_tolerance():
    assert amounts_match(100.00, 100.005)
    assert amounts_match(100.00, 99.99)
    assert not amounts_match(100.00, 100.02)


def test_amounts_accept_float_or_decimal_tolerance():
    assert amounts_match(10.0, 10.5, 0.5)
    assert amounts_match(10.0, 10.5, Decimal("0.5"))
    assert not amounts_match(10.0, 10.51, 0.5)


def test_negative_amounts():
    assert amounts_match(-5.00, -5.01)
    assert not amounts_match(-5.00, 5.00)


def test_nan_never_mismatches():
    assert amounts_match(math.nan, 1.0)
    assert amounts_match(1.0, math.nan)


def test_statuses_compare_only_when_both_present():
    assert statuses_match("paid", "paid")
    assert not statuses_match("paid", "pending")
    assert statuses_match(None, "paid")
    assert statuses_match("", "paid")
