"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional
import logging
import math

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig
from ..models.record import MatchResult, NormalizedRecord, ReconciliationResult
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
VARIANCE_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

MATCH_HEADERS = [
    "Reference",
    "Internal Amount",
    "Provider Amount",
    "Difference",
    "Internal Status",
    "Provider Status",
    "Amount Match",
    "Status Match",
]


def _cell_amount(amount: Optional[float]) -> Any:
    if amount is None:
        return ""
    if math.isnan(amount):
        return "invalid"
    return amount


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config or ReconConfig()
        self.sheet_config = self.config.output.sheets

    def default_filename(self, when: Optional[datetime] = None) -> str:
        when = when or datetime.now()
        return self.config.output.excel.filename_template.format(
            date=when.strftime("%Y%m%d"), time=when.strftime("%H%M%S")
        )

    def generate_report(
        self,
        result: ReconciliationResult,
        output_path: Path,
        *,
        internal_name: str = "internal",
        provider_name: str = "provider",
    ) -> Path:
        """
        Generate the complete reconciliation workbook.

        Args:
            result: Reconciliation result to render
            output_path: Path for output file
            internal_name: Display name of the internal file
            provider_name: Display name of the provider file

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be saved
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        sheets = self.sheet_config
        if sheets.summary.enabled:
            self._create_summary_sheet(wb, result, internal_name, provider_name)
        if sheets.matched.enabled:
            self._create_match_sheet(wb, sheets.matched.name, result.matched)
        if sheets.internal_only.enabled:
            self._create_record_sheet(wb, sheets.internal_only.name, result.internal_only)
        if sheets.provider_only.enabled:
            self._create_record_sheet(wb, sheets.provider_only.name, result.provider_only)
        if sheets.amount_mismatches.enabled:
            self._create_match_sheet(
                wb, sheets.amount_mismatches.name, result.amount_mismatches
            )
        if sheets.status_mismatches.enabled:
            self._create_match_sheet(
                wb, sheets.status_mismatches.name, result.status_mismatches
            )

        if not wb.sheetnames:
            raise ReportGenerationError("All report sheets are disabled")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            logger.error(f"Failed to save report: {e}")
            raise ReportGenerationError(f"Failed to save report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self,
        wb: Workbook,
        result: ReconciliationResult,
        internal_name: str,
        provider_name: str,
    ) -> None:
        """Create the summary sheet with key metrics."""
        summary = result.summary
        ws = wb.create_sheet(self.sheet_config.summary.name)

        ws["A1"] = "Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        ws["A3"] = "File Information"
        ws["A3"].font = Font(bold=True)
        file_info = [
            ("Internal File:", internal_name),
            ("Provider File:", provider_name),
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            (
                "Amount Tolerance:",
                f"{self.config.matching.settings.amount_tolerance}",
            ),
        ]
        for i, (label, value) in enumerate(file_info, start=4):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws["A9"] = "Record Counts"
        ws["A9"].font = Font(bold=True)
        count_data = [
            ("Total Internal Records:", summary.total_internal),
            ("Total Provider Records:", summary.total_provider),
            ("Matched:", summary.matched_count),
            ("Internal Only:", summary.internal_only_count),
            ("Provider Only:", summary.provider_only_count),
            ("Amount Mismatches:", summary.amount_mismatch_count),
            ("Status Mismatches:", summary.status_mismatch_count),
            ("Non-numeric Amounts:", summary.invalid_amount_count),
            ("Total Discrepancies:", summary.total_discrepancies),
            ("Match Rate:", f"{summary.match_rate}%"),
        ]
        for i, (label, value) in enumerate(count_data, start=10):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _create_match_sheet(
        self, wb: Workbook, sheet_name: str, matches: list[MatchResult]
    ) -> None:
        """Create a sheet of two-sided match rows."""
        ws = wb.create_sheet(sheet_name)
        self._write_headers(ws, MATCH_HEADERS)

        for row_num, match in enumerate(matches, start=2):
            difference = match.amount_difference
            row_data = [
                match.reference,
                _cell_amount(match.internal.amount),
                _cell_amount(match.provider.amount),
                _cell_amount(difference),
                match.internal.status or "",
                match.provider.status or "",
                "Yes" if match.amount_match else "No",
                "Yes" if match.status_match else "No",
            ]
            fill = MATCH_FILL if match.is_clean else VARIANCE_FILL

            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = fill

        self._auto_fit_columns(ws)

    def _create_record_sheet(
        self, wb: Workbook, sheet_name: str, records: list[NormalizedRecord]
    ) -> None:
        """Create a sheet of one-sided records, pass-through columns included."""
        ws = wb.create_sheet(sheet_name)

        headers = ["Row", "Reference", "Amount", "Status"]
        extra_columns: list[str] = []
        for record in records:
            for key in record.extra:
                if key not in extra_columns:
                    extra_columns.append(key)
        self._write_headers(ws, headers + extra_columns)

        for row_num, record in enumerate(records, start=2):
            row_data = [
                record.row_number or "",
                record.reference,
                _cell_amount(record.amount),
                record.status or "",
            ] + [
                "" if record.extra.get(key) is None else str(record.extra[key])
                for key in extra_columns
            ]

            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = UNMATCHED_FILL

        self._auto_fit_columns(ws)

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column_cells[0].column_letter].width = min(
                max_length + 2, 50
            )
