"""
CSV reading for reconciliation inputs.
Tokenizing is delegated to pandas; this module only adapts its output
into header-normalized rows of raw strings.
"""

from collections import Counter
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Optional, Union
import logging
import re

import pandas as pd

from ..config import ReconConfig
from ..utils.exceptions import ParseError

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass
class RawTable:
    """Header-normalized CSV content, every cell kept as parsed text ('' when empty)."""

    columns: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)
    source: str = ""


def normalize_header(header: Any) -> str:
    """Trim, lowercase and replace whitespace runs with underscores."""
    text = str(header).replace("\ufeff", "").strip().lower()
    return _WHITESPACE_RUN.sub("_", text)


def _frame_to_table(df: pd.DataFrame, source: str) -> RawTable:
    columns = [normalize_header(c) for c in df.columns]
    duplicates = sorted(name for name, n in Counter(columns).items() if n > 1)
    if duplicates:
        raise ParseError(
            f"Duplicate columns after header normalization in {source}: "
            f"{', '.join(duplicates)}",
            source=source,
        )
    df.columns = columns
    # Missing cells of short rows are NaN on some pandas versions, '' on others
    df = df.astype(object).fillna("")
    return RawTable(
        columns=list(df.columns),
        rows=df.to_dict(orient="records"),
        source=source,
    )


def _read(
    handle: Union[Path, StringIO],
    source: str,
    encoding: Optional[str],
    delimiter: str,
) -> RawTable:
    try:
        df = pd.read_csv(
            handle,
            encoding=encoding,
            delimiter=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except FileNotFoundError as e:
        raise ParseError(f"File not found: {source}", source=source) from e
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"CSV parsing error: {source} is empty", source=source) from e
    except pd.errors.ParserError as e:
        raise ParseError(f"CSV parsing error: {e}", source=source) from e
    except UnicodeDecodeError as e:
        raise ParseError(
            f"File reading error: {source} is not valid {encoding}", source=source
        ) from e
    except OSError as e:
        raise ParseError(
            f"File reading error: {source}: {e.strerror or e}", source=source
        ) from e

    table = _frame_to_table(df, source)
    logger.debug(f"Read {len(table.rows)} rows from {source}: columns={table.columns}")
    return table


def read_csv_text(text: str, *, source: str = "<text>", delimiter: str = ",") -> RawTable:
    """
    Parse CSV content held in memory.

    Args:
        text: CSV content including the header row
        source: Name used in error messages
        delimiter: Field delimiter

    Returns:
        Parsed table

    Raises:
        ParseError: If the content is empty or malformed
    """
    return _read(StringIO(text), source, None, delimiter)


def read_csv_file(
    file_path: Path, *, encoding: str = "utf-8", delimiter: str = ","
) -> RawTable:
    """
    Parse a CSV file from disk.

    Raises:
        ParseError: If the file is missing, unreadable, empty, undecodable
            or malformed
    """
    logger.info(f"Reading CSV file: {file_path}")
    return _read(Path(file_path), Path(file_path).name, encoding, delimiter)


class CSVReader:
    """Reads CSV inputs using the encoding and delimiter from configuration."""

    def __init__(self, config: Optional[ReconConfig] = None):
        self.config = config or ReconConfig()

    def read_file(self, file_path: Path) -> RawTable:
        input_config = self.config.input
        return read_csv_file(
            file_path,
            encoding=input_config.encoding,
            delimiter=input_config.delimiter,
        )

    def read_text(self, text: str, source: str = "<text>") -> RawTable:
        return read_csv_text(text, source=source, delimiter=self.config.input.delimiter)
