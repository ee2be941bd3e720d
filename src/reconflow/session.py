"""
Reconciliation session state.

A session holds what the presentation layer needs between user actions: the
two loaded inputs, a per-side error message, the processing flag and the
latest result. The engine itself stays stateless; the session passes it the
loaded records on every run and replaces the stored result wholesale.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging

from .config import ReconConfig
from .matching.engine import ReconciliationEngine
from .models.record import (
    ExportKind,
    NormalizedRecord,
    ReconciliationResult,
    RecordSource,
)
from .parsers.csv_reader import CSVReader, RawTable
from .parsers.normalizer import RecordNormalizer
from .reports.csv_exporter import export_result
from .utils.exceptions import (
    MissingColumnsError,
    NoResultError,
    ParseError,
    SessionBusyError,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadedInput:
    """One side's successfully normalized upload."""

    name: str
    records: list[NormalizedRecord] = field(default_factory=list)
    raw_row_count: int = 0

    @property
    def skipped_rows(self) -> int:
        return self.raw_row_count - len(self.records)


class ReconciliationSession:
    """Upload, run, export and reset, with errors scoped to one side."""

    def __init__(self, config: Optional[ReconConfig] = None):
        self.config = config or ReconConfig()
        self.reader = CSVReader(self.config)
        self.normalizer = RecordNormalizer(self.config)
        self.engine = ReconciliationEngine(self.config)

        self.inputs: dict[RecordSource, Optional[LoadedInput]] = {}
        self.errors: dict[RecordSource, Optional[str]] = {}
        self.result: Optional[ReconciliationResult] = None
        self.is_processing = False
        self.reset()

    @staticmethod
    def _side(side: Union[RecordSource, str]) -> RecordSource:
        return side if isinstance(side, RecordSource) else RecordSource(side)

    def load(self, side: Union[RecordSource, str], file_path: Path) -> bool:
        """
        Read and normalize a CSV file for one side.

        Returns:
            True on success. On failure the error is kept in ``errors`` and
            only this side's data is cleared.
        """
        source = self._side(side)
        return self._ingest(
            source, Path(file_path).name, lambda: self.reader.read_file(file_path)
        )

    def load_text(
        self, side: Union[RecordSource, str], text: str, name: str = "<text>"
    ) -> bool:
        """Same as ``load`` for CSV content already in memory."""
        source = self._side(side)
        return self._ingest(
            source, name, lambda: self.reader.read_text(text, source=name)
        )

    def _ingest(self, source: RecordSource, name: str, read) -> bool:
        self.errors[source] = None
        try:
            table: RawTable = read()
            records = self.normalizer.normalize_table(table)
        except (ParseError, MissingColumnsError) as e:
            logger.warning(f"{source.value} upload rejected: {e}")
            self.errors[source] = str(e)
            self.inputs[source] = None
            return False

        self.inputs[source] = LoadedInput(
            name=name, records=records, raw_row_count=len(table.rows)
        )
        return True

    def records(self, side: Union[RecordSource, str]) -> list[NormalizedRecord]:
        loaded = self.inputs.get(self._side(side))
        return list(loaded.records) if loaded else []

    @property
    def ready(self) -> bool:
        """Both sides hold records and no run is in progress."""
        return (
            not self.is_processing
            and bool(self.records(RecordSource.INTERNAL))
            and bool(self.records(RecordSource.PROVIDER))
        )

    def run(self) -> ReconciliationResult:
        """
        Reconcile the loaded inputs and store the result.

        Raises:
            SessionBusyError: If a run is already in progress
            EmptyInputError: If either side has no usable records
        """
        if self.is_processing:
            raise SessionBusyError("A reconciliation run is already in progress")

        self.is_processing = True
        try:
            result = self.engine.reconcile(
                self.records(RecordSource.INTERNAL),
                self.records(RecordSource.PROVIDER),
            )
        finally:
            self.is_processing = False

        self.result = result
        return result

    def export(self, kind: ExportKind, output_dir: Path) -> Path:
        if self.result is None:
            raise NoResultError("Run a reconciliation before exporting")
        return export_result(self.result, kind, output_dir, self.config)

    def reset(self) -> None:
        """Discard uploads, errors and the current result."""
        self.inputs = {RecordSource.INTERNAL: None, RecordSource.PROVIDER: None}
        self.errors = {RecordSource.INTERNAL: None, RecordSource.PROVIDER: None}
        self.result = None
