"""Matching engine and comparison rules."""

from .comparison import amounts_match, statuses_match
from .engine import ReconciliationEngine, reconcile

__all__ = [
    "ReconciliationEngine",
    "reconcile",
    "amounts_match",
    "statuses_match",
]
