"""
Record normalization.
Turns header-normalized CSV rows into NormalizedRecord objects.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional
import logging
import math
import re

from ..config import ColumnMappings, ReconConfig
from ..models.record import NormalizedRecord
from ..utils.exceptions import MissingColumnsError
from .csv_reader import RawTable

logger = logging.getLogger(__name__)

# Thousands separators are only recognised in well-formed groups: 1,234,567.89
_GROUPED_AMOUNT = re.compile(r"[-+]?\d{1,3}(,\d{3})+(\.\d*)?")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def normalize_reference(value: Any) -> str:
    """Coerce a raw reference to a trimmed string; missing becomes ''."""
    if _is_blank(value):
        return ""
    return str(value).strip()


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a raw amount cell.

    A single leading "$" is dropped and commas are accepted only as
    thousands separators; any other comma makes the value malformed.

    Args:
        value: Cell value (usually text)

    Returns:
        None when the cell is absent or blank, the parsed float otherwise,
        or NaN when the text is not a number.
    """
    if _is_blank(value):
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    text = str(value).strip()
    if text.startswith("$"):
        text = text[1:].lstrip()
    if _GROUPED_AMOUNT.fullmatch(text):
        text = text.replace(",", "")
    elif "," in text or "_" in text:
        return math.nan

    try:
        return float(text)
    except ValueError:
        return math.nan


def normalize_status(value: Any) -> Optional[str]:
    """Lowercase and trim a status; blank becomes None."""
    if _is_blank(value):
        return None
    return str(value).strip().lower()


class RecordNormalizer:
    """
    Converts raw rows into normalized records.

    The reference column is required at batch level; amount and status are
    optional and every other column is carried through untouched.
    """

    def __init__(self, config: Optional[ReconConfig] = None):
        self.config = config or ReconConfig()
        self.columns: ColumnMappings = self.config.input.column_mappings

    @property
    def required_columns(self) -> list[str]:
        return [self.columns.reference]

    def check_columns(self, headers: Iterable[str], source: str = "") -> None:
        """
        Raises:
            MissingColumnsError: If any required column is absent
        """
        present = set(headers)
        missing = [c for c in self.required_columns if c not in present]
        if missing:
            logger.error(f"{source or 'input'}: missing required columns {missing}")
            raise MissingColumnsError(missing, source=source)

    def normalize(
        self, raw_row: Mapping[str, Any], row_number: Optional[int] = None
    ) -> Optional[NormalizedRecord]:
        """
        Normalize a single row.

        Returns:
            The normalized record, or None when the reference is empty
        """
        reference = normalize_reference(raw_row.get(self.columns.reference))
        if not reference:
            return None

        core = {self.columns.reference, self.columns.amount, self.columns.status}
        extra = {k: v for k, v in raw_row.items() if k not in core}

        record = NormalizedRecord(
            reference=reference,
            amount=parse_amount(raw_row.get(self.columns.amount)),
            status=normalize_status(raw_row.get(self.columns.status)),
            extra=extra,
            row_number=row_number,
        )
        if record.has_invalid_amount:
            logger.warning(
                f"Row {row_number} ({reference}): amount "
                f"{raw_row.get(self.columns.amount)!r} is not numeric"
            )
        return record

    def normalize_rows(
        self,
        columns: Iterable[str],
        rows: Iterable[Mapping[str, Any]],
        source: str = "",
    ) -> list[NormalizedRecord]:
        """
        Normalize a batch of rows sharing one header.

        Rows with an empty reference are dropped.

        Raises:
            MissingColumnsError: If the header lacks a required column
        """
        self.check_columns(columns, source)

        records: list[NormalizedRecord] = []
        skipped = 0
        for idx, row in enumerate(rows, start=1):
            record = self.normalize(row, row_number=idx)
            if record is None:
                skipped += 1
                continue
            records.append(record)

        if skipped:
            logger.info(f"{source or 'input'}: skipped {skipped} rows without a reference")
        logger.info(f"{source or 'input'}: normalized {len(records)} records")
        return records

    def normalize_table(self, table: RawTable) -> list[NormalizedRecord]:
        return self.normalize_rows(table.columns, table.rows, source=table.source)
