"""CSV exports and Excel reports."""

from .csv_exporter import export_all, export_result, serialize
from .excel_generator import ExcelReportGenerator

__all__ = ["ExcelReportGenerator", "export_all", "export_result", "serialize"]
