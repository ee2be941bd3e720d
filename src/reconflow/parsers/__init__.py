"""CSV reading and record normalization."""

from .csv_reader import CSVReader, RawTable, normalize_header, read_csv_file, read_csv_text
from .normalizer import RecordNormalizer

__all__ = [
    "CSVReader",
    "RawTable",
    "RecordNormalizer",
    "normalize_header",
    "read_csv_file",
    "read_csv_text",
]
