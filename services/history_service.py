"""
History Service - Appends formatted recital blocks to the Recital History sheet.

Each recital becomes a block of rows:

    row 0   date (merged across the block, right aligned)
    row 1   12:00 | venue
    row 2   2:00  | venue
    row 3   ON | OL | ID | Title | Composer | Length
    ...     one row per composition
    last    total length formula

Blocks are appended below the used range and earlier blocks are never
rewritten.
"""

import logging
from typing import List, Optional

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from backend.config import Settings, get_settings
from backend.models.recital import Recital
from services.workbook_service import WorkbookStore

logger = logging.getLogger(__name__)

BLOCK_WIDTH = 6
BLANK_ROWS_BETWEEN_BLOCKS = 3
HEADER = ["ON", "OL", "ID", "Title", "Composer", "Length"]

# Offsets of the fixed rows within a block
DATE_ROW = 0
V12_ROW = 1
V2_ROW = 2
HEADER_ROW = 3
FIRST_BODY_ROW = 4

LENGTH_COLUMN = 6  # F

BLACK = "000000"
WHITE = "FFFFFF"
BAND_COLOR = "DADADA"

THIN_BLACK = Side(style="thin", color=BLACK)


def build_block(recital: Recital) -> List[List]:
    """Build the cell values of one history block."""
    rows = [
        [recital.date.date(), None, None, None, None, None],
        ["12:00", recital.venue12 or None, None, None, None, None],
        ["2:00", recital.venue2 or None, None, None, None, None],
        list(HEADER),
    ]

    for composition in recital.repertoire:
        rows.append([
            composition.number or None,
            composition.letter or None,
            composition.id,
            composition.title,
            composition.composer or None,
            composition.length
        ])

    # Total row; the formula is filled in once the block position is known
    rows.append([None] * BLOCK_WIDTH)
    return rows


def total_formula(first_body_row: int, composition_count: int):
    """
    Sum of the Length column over exactly the composition rows.

    A recital without compositions totals 0.
    """
    if composition_count == 0:
        return 0
    column = get_column_letter(LENGTH_COLUMN)
    last_body_row = first_body_row + composition_count - 1
    return f"=SUM({column}{first_body_row}:{column}{last_body_row})"


class HistoryService:
    """Appends recitals to the Recital History sheet."""

    def __init__(self, store: WorkbookStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def add_recitals(self, recitals: List[Recital]) -> int:
        """
        Append one block per recital, syncing after each block.

        Returns:
            Number of recitals added
        """
        for recital in recitals:
            start_row = self.add_recital(recital)
            self.store.sync()
            logger.debug(f"Added {recital.date_string} to history at row {start_row}")

        logger.info(f"{len(recitals)} recitals added to recital history")
        return len(recitals)

    def add_recital(self, recital: Recital) -> int:
        """
        Write and format one block three rows below the used range.

        Returns:
            1-based sheet row of the block's date row
        """
        sheet = self.settings.RECITAL_HISTORY_SHEET
        rows = build_block(recital)

        start_row = self.store.last_used_row(sheet) + BLANK_ROWS_BETWEEN_BLOCKS + 1
        first_body_row = start_row + FIRST_BODY_ROW
        count = len(recital.repertoire)

        rows[-1][LENGTH_COLUMN - 1] = total_formula(first_body_row, count)
        self.store.write_range(sheet, start_row, 1, rows)

        self._format_block(self.store.sheet(sheet), start_row, count)
        return start_row

    def _format_block(self, worksheet, start_row: int, count: int):
        date_row = start_row + DATE_ROW
        v12_row = start_row + V12_ROW
        v2_row = start_row + V2_ROW
        header_row = start_row + HEADER_ROW
        first_body_row = start_row + FIRST_BODY_ROW
        total_row = first_body_row + count

        # Date row
        date_cell = worksheet.cell(row=date_row, column=1)
        date_cell.number_format = "m/d/yyyy"
        date_cell.font = Font(bold=True, size=14)
        date_cell.alignment = Alignment(horizontal="right")
        for col in range(1, BLOCK_WIDTH + 1):
            worksheet.cell(row=date_row, column=col).border = Border(bottom=THIN_BLACK)
        worksheet.merge_cells(start_row=date_row, start_column=1,
                              end_row=date_row, end_column=BLOCK_WIDTH)

        # Venue rows
        for row in (v12_row, v2_row):
            label = worksheet.cell(row=row, column=1)
            label.number_format = "@"
            label.font = Font(bold=True)
            worksheet.cell(row=row, column=2).number_format = "@"
            worksheet.merge_cells(start_row=row, start_column=2,
                                  end_row=row, end_column=BLOCK_WIDTH)

        # Header row
        for col in range(1, BLOCK_WIDTH + 1):
            cell = worksheet.cell(row=header_row, column=col)
            cell.fill = PatternFill(fill_type="solid", start_color=BLACK, end_color=BLACK)
            cell.font = Font(bold=True, color=WHITE)
            cell.alignment = Alignment(horizontal="center")

        # Body rows, banded on even zero-based sheet rows
        for row in range(first_body_row, total_row):
            for col in range(1, BLOCK_WIDTH + 1):
                cell = worksheet.cell(row=row, column=col)
                cell.border = Border(left=THIN_BLACK, right=THIN_BLACK,
                                     top=THIN_BLACK, bottom=THIN_BLACK)
                if (row - 1) % 2 == 0:
                    cell.fill = PatternFill(fill_type="solid", start_color=BAND_COLOR,
                                            end_color=BAND_COLOR)
            worksheet.cell(row=row, column=1).number_format = "@"
            worksheet.cell(row=row, column=LENGTH_COLUMN).number_format = "0.00"
            # Composer and Length
            for col in (5, 6):
                worksheet.cell(row=row, column=col).alignment = Alignment(horizontal="right")

        # Total
        total_cell = worksheet.cell(row=total_row, column=LENGTH_COLUMN)
        total_cell.font = Font(bold=True)
        total_cell.alignment = Alignment(horizontal="right")
        total_cell.number_format = "0.00"
