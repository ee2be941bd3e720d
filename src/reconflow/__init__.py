"""ReconFlow: reference-keyed reconciliation of two CSV exports."""

__version__ = "0.1.0"
