"""
Field comparison rules applied to a matched reference pair.
"""

from decimal import Decimal
from typing import Optional, Union
import math

DEFAULT_AMOUNT_TOLERANCE = Decimal("0.01")


def _to_decimal(value: float) -> Decimal:
    # repr gives the shortest text that round-trips, so 100.01 stays 100.01
    return Decimal(repr(float(value)))


def amounts_match(
    internal_amount: Optional[float],
    provider_amount: Optional[float],
    tolerance: Union[Decimal, float] = DEFAULT_AMOUNT_TOLERANCE,
) -> bool:
    """
    Check whether two amounts agree within tolerance.

    A mismatch needs both amounts present and an absolute difference strictly
    greater than the tolerance. Missing or NaN amounts never mismatch.

    Args:
        internal_amount: Amount from the internal record
        provider_amount: Amount from the provider record
        tolerance: Largest difference still treated as equal

    Returns:
        False only for a detected mismatch
    """
    if internal_amount is None or provider_amount is None:
        return True

    if math.isnan(internal_amount) or math.isnan(provider_amount):
        return True

    if not (math.isfinite(internal_amount) and math.isfinite(provider_amount)):
        # inf - inf is NaN and compares False, same as the NaN case
        return not abs(internal_amount - provider_amount) > float(tolerance)

    difference = abs(_to_decimal(internal_amount) - _to_decimal(provider_amount))
    return not difference > Decimal(str(tolerance))


def statuses_match(
    internal_status: Optional[str], provider_status: Optional[str]
) -> bool:
    """Statuses mismatch only when both are present and differ."""
    if not internal_status or not provider_status:
        return True
    return internal_status == provider_status
