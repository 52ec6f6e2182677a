"""
Workbook Service - Named range and table access to the planning workbook.

This module wraps an openpyxl workbook as a simple key-range store:
named-range reads, table reads, range writes, table row inserts and
table filters. Writes stay in memory until sync() saves the workbook.
"""

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import openpyxl
from openpyxl.utils import get_column_letter, range_boundaries
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.filters import AutoFilter

from services.errors import ConfigurationError, WorkbookIOError

logger = logging.getLogger(__name__)

MACRO_EXTENSIONS = ('.xlsm', '.xltm')


@dataclass
class TableData:
    """Values of an Excel table, header row first, with its sheet position."""

    name: str
    values: List[List[Any]]
    first_row: int  # 1-based sheet row of the header
    first_col: int  # 1-based sheet column of the first table column

    @property
    def header(self) -> List[Any]:
        return self.values[0] if self.values else []

    def column_index(self, column: str) -> int:
        """Return the 0-based position of a column within the table."""
        for index, heading in enumerate(self.header):
            if heading is not None and str(heading) == column:
                return index
        raise ConfigurationError(f"Column '{column}' not found in table '{self.name}'")

    def find_row(self, key: Any) -> Optional[int]:
        """
        Find the first data row whose first cell equals key.

        Rows are scanned top to bottom, so duplicate keys resolve to the
        topmost row.

        Returns:
            Index into values (header is 0), or None if no row matches
        """
        for index in range(1, len(self.values)):
            row = self.values[index]
            if row and _same_key(row[0], key):
                return index
        return None


def _same_key(value: Any, key: Any) -> bool:
    """Compare table keys numerically so 87 matches 87.0 and '87'."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return float(value) == float(key)
    except (TypeError, ValueError):
        return str(value) == str(key)


def filter_text(value: Any) -> str:
    """Render a cell value the way Excel lists it in a values filter."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class WorkbookStore:
    """
    Framework-agnostic access to an Excel workbook.

    The workbook is loaded twice: once with formulas, which is the copy
    written and saved, and once with Excel's cached values, which is the
    copy read from. Every write is applied to both so later reads in the
    same run see it.
    """

    def __init__(self, path: str):
        """
        Open a workbook.

        Args:
            path: Path to an .xlsx or .xlsm file

        Raises:
            WorkbookIOError: If the file cannot be read as a workbook
        """
        self.path = Path(path)
        self.keep_vba = self.path.suffix.lower() in MACRO_EXTENSIONS
        self.sync_count = 0
        self.pending_writes = 0

        logger.info(f"Opening workbook: {self.path}")

        try:
            self.wb_formulas = openpyxl.load_workbook(self.path, keep_vba=self.keep_vba)
            self.wb_values = openpyxl.load_workbook(self.path, data_only=True)
        except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as e:
            raise WorkbookIOError(f"Could not open workbook {self.path}: {e}") from e

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _worksheet(workbook, sheet_name: str):
        if sheet_name not in workbook.sheetnames:
            raise ConfigurationError(f"Worksheet '{sheet_name}' not found")
        return workbook[sheet_name]

    @staticmethod
    def _table(worksheet, table_name: str):
        if table_name not in worksheet.tables:
            raise ConfigurationError(
                f"Table '{table_name}' not found on worksheet '{worksheet.title}'"
            )
        return worksheet.tables[table_name]

    def sheet(self, sheet_name: str):
        """Return the writable worksheet, for formatting."""
        return self._worksheet(self.wb_formulas, sheet_name)

    def _resolve(self, sheet_name: str, name: str) -> Tuple[str, str]:
        """
        Resolve a range name to (sheet title, cell coordinates).

        Workbook-scoped names are tried first, then names scoped to the
        sheet, then the name is treated as a plain address on the sheet.
        """
        worksheet = self._worksheet(self.wb_values, sheet_name)

        defined = self.wb_values.defined_names.get(name)
        if defined is None:
            defined = worksheet.defined_names.get(name)

        if defined is not None:
            destinations = list(defined.destinations)
            if not destinations:
                raise ConfigurationError(f"Named range '{name}' does not refer to cells")
            target_sheet, coordinates = destinations[0]
            return target_sheet, coordinates.replace('$', '')

        try:
            range_boundaries(name)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"'{name}' is neither a named range nor a cell address on '{sheet_name}'"
            )
        return sheet_name, name.replace('$', '')

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_range(self, sheet_name: str, name: str) -> List[List[Any]]:
        """
        Read a named range (or address) as a 2D grid of values.

        Args:
            sheet_name: Sheet used to scope the name and for plain addresses
            name: Defined name or A1-style address

        Returns:
            Rows of cell values; empty cells are None
        """
        target_sheet, coordinates = self._resolve(sheet_name, name)
        worksheet = self._worksheet(self.wb_values, target_sheet)
        min_col, min_row, max_col, max_row = range_boundaries(coordinates)

        grid = [
            list(row) for row in worksheet.iter_rows(
                min_row=min_row, max_row=max_row,
                min_col=min_col, max_col=max_col,
                values_only=True
            )
        ]
        logger.debug(f"Read {name} ({target_sheet}!{coordinates}): {len(grid)} rows")
        return grid

    def read_value(self, sheet_name: str, name: str) -> Any:
        """Read the top-left value of a named range."""
        grid = self.read_range(sheet_name, name)
        return grid[0][0] if grid and grid[0] else None

    def read_table(self, sheet_name: str, table_name: str) -> TableData:
        """Read a whole table including its header row."""
        worksheet = self._worksheet(self.wb_values, sheet_name)
        table = self._table(worksheet, table_name)
        min_col, min_row, max_col, max_row = range_boundaries(table.ref)

        values = [
            list(row) for row in worksheet.iter_rows(
                min_row=min_row, max_row=max_row,
                min_col=min_col, max_col=max_col,
                values_only=True
            )
        ]
        return TableData(name=table_name, values=values, first_row=min_row, first_col=min_col)

    def last_used_row(self, sheet_name: str) -> int:
        """1-based index of the last row of the sheet's used range."""
        return self._worksheet(self.wb_formulas, sheet_name).max_row

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_range(self, sheet_name: str, row: int, column: int,
                    values: Sequence[Sequence[Any]]):
        """
        Write a 2D block of values with its top-left cell at (row, column).

        Args:
            sheet_name: Target worksheet
            row: 1-based row
            column: 1-based column
            values: Rows of values; strings starting with '=' are formulas
        """
        for workbook in (self.wb_formulas, self.wb_values):
            worksheet = self._worksheet(workbook, sheet_name)
            for row_offset, row_values in enumerate(values):
                for col_offset, value in enumerate(row_values):
                    worksheet.cell(row=row + row_offset, column=column + col_offset, value=value)

        self.pending_writes += 1
        logger.debug(f"Queued write to {sheet_name} at "
                     f"{get_column_letter(column)}{row} ({len(values)} rows)")

    def insert_table_row(self, sheet_name: str, table_name: str, position: int,
                         values: Sequence[Any]) -> int:
        """
        Insert a row into a table, growing the table by one row.

        Args:
            sheet_name: Worksheet holding the table
            table_name: Table name
            position: 0-based data row position (0 inserts above the first data row)
            values: Cell values, left to right from the table's first column

        Returns:
            1-based sheet row of the inserted row
        """
        inserted_row = None

        for workbook in (self.wb_formulas, self.wb_values):
            worksheet = self._worksheet(workbook, sheet_name)
            table = self._table(worksheet, table_name)
            min_col, min_row, max_col, max_row = range_boundaries(table.ref)

            target_row = min_row + 1 + position
            if position < 0 or target_row > max_row + 1:
                raise ValueError(f"Row position {position} is outside table '{table_name}'")

            # insert_rows shifts cells only; the table ref is grown by hand
            worksheet.insert_rows(target_row)
            table.ref = f"{get_column_letter(min_col)}{min_row}:{get_column_letter(max_col)}{max_row + 1}"
            if table.autoFilter is not None:
                table.autoFilter.ref = table.ref

            for offset, value in enumerate(values):
                worksheet.cell(row=target_row, column=min_col + offset, value=value)

            inserted_row = target_row

        self.pending_writes += 1
        logger.debug(f"Inserted row {inserted_row} into table {table_name}")
        return inserted_row

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def _auto_filter(self, table) -> AutoFilter:
        if table.autoFilter is None:
            table.autoFilter = AutoFilter(ref=table.ref)
        return table.autoFilter

    def _column_id(self, sheet_name: str, table_name: str, column: str) -> int:
        return self.read_table(sheet_name, table_name).column_index(column)

    def clear_filter(self, sheet_name: str, table_name: str, column: str):
        """Remove any filter on one table column."""
        worksheet = self._worksheet(self.wb_formulas, sheet_name)
        table = self._table(worksheet, table_name)
        col_id = self._column_id(sheet_name, table_name, column)

        auto_filter = self._auto_filter(table)
        auto_filter.filterColumn = [
            filter_column for filter_column in auto_filter.filterColumn
            if filter_column.colId != col_id
        ]
        self._refresh_hidden_rows(sheet_name, table)
        self.pending_writes += 1

    def apply_filter(self, sheet_name: str, table_name: str, column: str,
                     values: Sequence[str]):
        """Show only rows whose value in column is one of values."""
        worksheet = self._worksheet(self.wb_formulas, sheet_name)
        table = self._table(worksheet, table_name)
        col_id = self._column_id(sheet_name, table_name, column)

        auto_filter = self._auto_filter(table)
        auto_filter.filterColumn = [
            filter_column for filter_column in auto_filter.filterColumn
            if filter_column.colId != col_id
        ]
        auto_filter.add_filter_column(col_id, list(values))
        self._refresh_hidden_rows(sheet_name, table)
        self.pending_writes += 1

    def _refresh_hidden_rows(self, sheet_name: str, table):
        """
        Hide table rows rejected by the table's value filters.

        openpyxl stores filter criteria without evaluating them, so row
        visibility is computed here from the cached cell values. openpyxl
        also saves formulas without their cached values, so a formula cell
        read back as None is unknown until Excel recalculates the file.
        Rows depending on such a cell keep their current visibility.
        """
        worksheet = self._worksheet(self.wb_formulas, sheet_name)
        value_sheet = self._worksheet(self.wb_values, sheet_name)
        min_col, min_row, _, max_row = range_boundaries(table.ref)

        allowed_by_column = {}
        for filter_column in table.autoFilter.filterColumn:
            # Custom and top-10 filters carry no value list; they are left to Excel
            if filter_column.filters is not None:
                allowed_by_column[filter_column.colId] = set(filter_column.filters.filter)

        hidden = 0
        unknown = 0
        for row in range(min_row + 1, max_row + 1):
            visible = self._row_visible(worksheet, value_sheet, row, min_col, allowed_by_column)
            if visible is None:
                unknown += 1
                continue
            worksheet.row_dimensions[row].hidden = not visible
            if not visible:
                hidden += 1

        if unknown:
            logger.warning(f"Table {table.displayName}: {unknown} rows depend on formulas "
                           f"without cached values; their visibility was left unchanged")
        logger.debug(f"Table {table.displayName}: {hidden} rows hidden by filters")

    @staticmethod
    def _row_visible(worksheet, value_sheet, row: int, min_col: int,
                     allowed_by_column) -> Optional[bool]:
        """Whether a row passes every value filter, or None if a filtered formula has no cached value."""
        visible = True
        for col_id, allowed in allowed_by_column.items():
            column = min_col + col_id
            value = value_sheet.cell(row=row, column=column).value
            if value is None and worksheet.cell(row=row, column=column).data_type == 'f':
                return None
            if filter_text(value) not in allowed:
                visible = False
        return visible

    # ------------------------------------------------------------------
    # Synchronization
    # ------------------------------------------------------------------

    def sync(self):
        """
        Save all pending changes to disk.

        Raises:
            WorkbookIOError: If the workbook cannot be written
        """
        try:
            self.wb_formulas.save(self.path)
        except OSError as e:
            raise WorkbookIOError(f"Could not save workbook {self.path}: {e}") from e

        self.sync_count += 1
        logger.debug(f"Synced {self.pending_writes} pending writes to {self.path}")
        self.pending_writes = 0
