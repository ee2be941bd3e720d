"""
CSV export of reconciliation result subsets.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional, Union
import logging

import pandas as pd

from ..config import ColumnMappings, ReconConfig
from ..models.record import (
    REFERENCE_FIELD,
    ExportKind,
    MatchResult,
    NormalizedRecord,
    ReconciliationResult,
)
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

MATCHED_COLUMNS = [
    REFERENCE_FIELD,
    "internal_amount",
    "provider_amount",
    "internal_status",
    "provider_status",
    "amount_match",
    "status_match",
]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def flatten_match(match: MatchResult) -> dict[str, Any]:
    """Two-sided view of a match with display flags."""
    return {
        REFERENCE_FIELD: match.reference,
        "internal_amount": match.internal.amount,
        "provider_amount": match.provider.amount,
        "internal_status": match.internal.status or "",
        "provider_status": match.provider.status or "",
        "amount_match": _yes_no(match.amount_match),
        "status_match": _yes_no(match.status_match),
    }


def _record_columns(
    rows: list[dict[str, Any]], mappings: ColumnMappings
) -> list[str]:
    columns = [mappings.reference, mappings.amount, mappings.status]
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


def serialize(
    subset: Union[Sequence[MatchResult], Sequence[NormalizedRecord]],
    kind: ExportKind,
    columns: Optional[ColumnMappings] = None,
) -> str:
    """
    Serialize a result subset to CSV text.

    Args:
        subset: Match results for two-sided kinds, records otherwise
        kind: Which subset is being exported
        columns: Column names the records were read with; one-sided exports
            use them as headers so pass-through columns are not shadowed

    Returns:
        CSV text with a header row
    """
    if kind.is_two_sided:
        rows = [flatten_match(m) for m in subset]
        headers = MATCHED_COLUMNS
    else:
        mappings = columns or ColumnMappings()
        rows = [
            r.to_row(mappings.reference, mappings.amount, mappings.status)
            for r in subset
        ]
        headers = _record_columns(rows, mappings)

    df = pd.DataFrame(rows, columns=headers)
    return df.to_csv(index=False, lineterminator="\n")


def export_filename(kind: ExportKind, config: Optional[ReconConfig] = None) -> str:
    exports = (config or ReconConfig()).output.exports
    return getattr(exports, kind.value)


def export_result(
    result: ReconciliationResult,
    kind: ExportKind,
    output_dir: Path,
    config: Optional[ReconConfig] = None,
) -> Path:
    """
    Write one result subset to ``output_dir``.

    Returns:
        Path of the written file

    Raises:
        ReportGenerationError: If the file cannot be written
    """
    config = config or ReconConfig()
    output_path = Path(output_dir) / export_filename(kind, config)
    text = serialize(result.subset(kind), kind, config.input.column_mappings)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to write {output_path}: {e}")
        raise ReportGenerationError(f"Failed to write {output_path}: {e}") from e

    logger.info(f"Exported {len(result.subset(kind))} {kind.value} rows to {output_path}")
    return output_path


def export_all(
    result: ReconciliationResult,
    output_dir: Path,
    config: Optional[ReconConfig] = None,
) -> dict[ExportKind, Path]:
    """Write every subset, one file per export kind."""
    return {kind: export_result(result, kind, output_dir, config) for kind in ExportKind}
