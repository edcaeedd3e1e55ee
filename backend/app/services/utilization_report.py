from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from app.models.report import UtilizationReportRequest

logger = logging.getLogger(__name__)

SHEET_NAME = "Utilization"
PERCENT_SYMBOL = "%"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

YTD_TARGET = 100
YTD_WARNING = 95


@dataclass(frozen=True)
class CellStyle:
    font: Font
    alignment: Alignment = field(default_factory=lambda: Alignment(horizontal="center"))
    fill: PatternFill | None = None


def _solid(color: str) -> PatternFill:
    return PatternFill(fill_type="solid", start_color=color, end_color=color)


HEADER = "header"
LEFT = "left"
CENTERED = "centered"
GREEN_FONT_CENTERED = "green_font_centered"
VIOLET_FONT_CENTERED = "violet_font_centered"
RED_FONT_CENTERED = "red_font_centered"
TOTAL_LABEL = "total_label"
TOTAL_CENTERED = "total_centered"
DARK_BACK_GREEN_CENTERED_BOLD_FONT = "dark_back_green_centered_bold_font"
DARK_BACK_VIOLET_CENTERED_BOLD_FONT = "dark_back_violet_centered_bold_font"
DARK_BACK_RED_CENTERED_BOLD_FONT = "dark_back_red_centered_bold_font"

CELL_STYLES: dict[str, CellStyle] = {
    HEADER: CellStyle(font=Font(bold=True, color="FFFFFF"), fill=_solid("1F4E78")),
    LEFT: CellStyle(font=Font(), alignment=Alignment(horizontal="left")),
    CENTERED: CellStyle(font=Font()),
    GREEN_FONT_CENTERED: CellStyle(font=Font(color="00B050")),
    VIOLET_FONT_CENTERED: CellStyle(font=Font(color="7030A0")),
    RED_FONT_CENTERED: CellStyle(font=Font(color="C00000")),
    TOTAL_LABEL: CellStyle(font=Font(bold=True), alignment=Alignment(horizontal="left"), fill=_solid("D9D9D9")),
    TOTAL_CENTERED: CellStyle(font=Font(bold=True), fill=_solid("D9D9D9")),
    DARK_BACK_GREEN_CENTERED_BOLD_FONT: CellStyle(font=Font(bold=True, color="FFFFFF"), fill=_solid("00B050")),
    DARK_BACK_VIOLET_CENTERED_BOLD_FONT: CellStyle(font=Font(bold=True, color="FFFFFF"), fill=_solid("7030A0")),
    DARK_BACK_RED_CENTERED_BOLD_FONT: CellStyle(font=Font(bold=True, color="FFFFFF"), fill=_solid("C00000")),
}


class UtilizationReport(ABC):
    """Single-sheet utilization workbook; subclasses lay out the rows."""

    def __init__(self, data: UtilizationReportRequest) -> None:
        self.data = data
        self.file_name = data.file_name
        self.cell_styles = CELL_STYLES

    def generate_report(self) -> bytes:
        workbook = self.populate_workbook()
        buffer = io.BytesIO()
        try:
            workbook.save(buffer)
        finally:
            workbook.close()
        logger.info("Generated %s with %d rows", self.file_name, len(self.data.rows))
        return buffer.getvalue()

    def populate_workbook(self) -> Workbook:
        workbook = Workbook()
        sheet = self.create_sheet(workbook)
        self.generate_header_row(sheet)
        self.generate_data_rows(sheet)
        self.adjust_column_size(sheet)
        return workbook

    def create_sheet(self, workbook: Workbook) -> Worksheet:
        sheet = workbook.active
        sheet.title = SHEET_NAME
        return sheet

    @abstractmethod
    def generate_header_row(self, sheet: Worksheet) -> None: ...

    @abstractmethod
    def generate_data_rows(self, sheet: Worksheet) -> None: ...

    @abstractmethod
    def generate_grand_total(
        self, sheet: Worksheet, row_number: int, grand_total: dict[str, float], ytd_total: float
    ) -> None: ...

    def adjust_column_size(self, sheet: Worksheet) -> None:
        for index, column in enumerate(sheet.iter_cols(), start=1):
            width = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            sheet.column_dimensions[get_column_letter(index)].width = width + 2

    def set_cell(
        self,
        sheet: Worksheet,
        row: int,
        column: int,
        value: str | int | float,
        style: CellStyle | None = None,
    ) -> None:
        cell = sheet.cell(row=row, column=column, value=value)
        if style is None:
            return
        cell.font = style.font
        cell.alignment = style.alignment
        if style.fill is not None:
            cell.fill = style.fill

    def ytd_cell_style(self, ytd: int) -> CellStyle:
        if ytd >= YTD_TARGET:
            return self.cell_styles[GREEN_FONT_CENTERED]
        if ytd > YTD_WARNING:
            return self.cell_styles[VIOLET_FONT_CENTERED]
        return self.cell_styles[RED_FONT_CENTERED]

    def ytd_total_cell_style(self, ytd: int) -> CellStyle:
        if ytd >= YTD_TARGET:
            return self.cell_styles[DARK_BACK_GREEN_CENTERED_BOLD_FONT]
        if ytd > YTD_WARNING:
            return self.cell_styles[DARK_BACK_VIOLET_CENTERED_BOLD_FONT]
        return self.cell_styles[DARK_BACK_RED_CENTERED_BOLD_FONT]

    @staticmethod
    def add_to_map(totals: dict[str, float], key: str, value: float) -> None:
        totals[key] = totals.get(key, 0) + value

    @staticmethod
    def get_percentage(value: float) -> str:
        return f"{int(value)}{PERCENT_SYMBOL}"


class PeriodUtilizationReport(UtilizationReport):
    """Serial, name, hours per period, and YTD; closed by a grand total row."""

    FIXED_HEADERS = ("Serial", "Name")
    YTD_HEADER = "YTD"
    GRAND_TOTAL_LABEL = "Grand Total"

    def generate_header_row(self, sheet: Worksheet) -> None:
        headers = [*self.FIXED_HEADERS, *self.data.periods, self.YTD_HEADER]
        for column, title in enumerate(headers, start=1):
            self.set_cell(sheet, 1, column, title, self.cell_styles[HEADER])

    def generate_data_rows(self, sheet: Worksheet) -> None:
        grand_total: dict[str, float] = {}
        ytd_total = 0.0
        row_number = 2
        ytd_column = len(self.FIXED_HEADERS) + len(self.data.periods) + 1

        for data_row in self.data.rows:
            self.set_cell(sheet, row_number, 1, data_row.serial, self.cell_styles[LEFT])
            self.set_cell(sheet, row_number, 2, data_row.full_name, self.cell_styles[LEFT])
            for offset, period in enumerate(self.data.periods):
                hours = data_row.hours.get(period, 0)
                self.set_cell(sheet, row_number, 3 + offset, hours, self.cell_styles[CENTERED])
                self.add_to_map(grand_total, period, hours)
            self.set_cell(
                sheet,
                row_number,
                ytd_column,
                self.get_percentage(data_row.ytd),
                self.ytd_cell_style(data_row.ytd),
            )
            ytd_total += data_row.ytd
            row_number += 1

        self.generate_grand_total(sheet, row_number, grand_total, ytd_total)

    def generate_grand_total(
        self, sheet: Worksheet, row_number: int, grand_total: dict[str, float], ytd_total: float
    ) -> None:
        # grand_total holds period hours only, ytd_total the summed YTD percentages
        total_style = self.cell_styles[TOTAL_CENTERED]
        self.set_cell(sheet, row_number, 1, self.GRAND_TOTAL_LABEL, self.cell_styles[TOTAL_LABEL])
        self.set_cell(sheet, row_number, 2, "", self.cell_styles[TOTAL_LABEL])
        for offset, period in enumerate(self.data.periods):
            self.set_cell(sheet, row_number, 3 + offset, grand_total.get(period, 0), total_style)

        # YTD total is the mean of the per-employee YTD percentages
        count = len(self.data.rows)
        ytd = int(ytd_total / count) if count else 0
        ytd_column = len(self.FIXED_HEADERS) + len(self.data.periods) + 1
        self.set_cell(sheet, row_number, ytd_column, self.get_percentage(ytd), self.ytd_total_cell_style(ytd))
