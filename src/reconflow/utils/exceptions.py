"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class ParseError(ReconciliationError):
    """Error parsing a CSV file."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class MissingColumnsError(ReconciliationError):
    """Required columns are absent from a CSV header row."""

    def __init__(self, missing: list[str], source: str = ""):
        self.missing = list(missing)
        self.source = source
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class EmptyInputError(ReconciliationError):
    """Reconciliation attempted with no usable records on one or both sides."""

    def __init__(self, sides: list[str]):
        self.sides = list(sides)
        super().__init__(
            f"No usable records for: {', '.join(self.sides)}. "
            "Load both files before reconciling."
        )


class DuplicateReferenceError(ReconciliationError):
    """A transaction reference appears more than once within one input."""

    def __init__(self, source: str, references: list[str]):
        self.source = source
        self.references = list(references)
        shown = ", ".join(self.references[:10])
        if len(self.references) > 10:
            shown += f" (+{len(self.references) - 10} more)"
        super().__init__(f"Duplicate references in {source} file: {shown}")


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error writing an export or report file."""

    pass


class SessionBusyError(ReconciliationError):
    """A reconciliation run is already in progress."""

    pass


class NoResultError(ReconciliationError):
    """An export was requested before any reconciliation run."""

    pass
