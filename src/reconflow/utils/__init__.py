"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    ParseError,
    MissingColumnsError,
    EmptyInputError,
    DuplicateReferenceError,
    ConfigurationError,
    ReportGenerationError,
    SessionBusyError,
    NoResultError,
)
from .logging_config import setup_logging

__all__ = [
    "ReconciliationError",
    "ParseError",
    "MissingColumnsError",
    "EmptyInputError",
    "DuplicateReferenceError",
    "ConfigurationError",
    "ReportGenerationError",
    "SessionBusyError",
    "NoResultError",
    "setup_logging",
]
