"""
Tests for appending recital blocks to the Recital History sheet.
"""

from datetime import datetime

import openpyxl

from backend.models.recital import Recital
from services.history_service import HEADER, HistoryService, build_block, total_formula
from services.workbook_service import WorkbookStore


ROWS = [
    ["1.", "", 12, "Venite!", "John Leavitt", 4, "", ""],
    ["2.", "a.", 34, "Flute Solo", "Thomas Arne", 3.5, "", ""],
    ["", "b.", 56, "My Shepherd Will Supply My Need", "Dale Wood", 5, "", ""],
    ["3.", "", 87, "Carillon de Westminster", "Louis Vierne", 7, "25", "23A"],
]


def _recital(stamp=43773, rows=ROWS):
    return Recital.create(stamp, "Brian Mathias", "Tabernacle", "Conference Center", rows)


def _history_sheet(path):
    return openpyxl.load_workbook(path)["Recital History"]


class TestBuildBlock:
    """Test block values independent of the workbook."""

    def test_shape(self):
        rows = build_block(_recital())

        assert len(rows) == 4 + len(ROWS) + 1
        assert all(len(row) == 6 for row in rows)
        assert rows[1][:2] == ["12:00", "Tabernacle"]
        assert rows[2][:2] == ["2:00", "Conference Center"]
        assert rows[3] == HEADER
        assert rows[5] == ["2.", "a.", 34, "Flute Solo", "Thomas Arne", 3.5]

    def test_total_formula(self):
        assert total_formula(9, 4) == "=SUM(F9:F12)"
        assert total_formula(9, 1) == "=SUM(F9:F9)"
        assert total_formula(9, 0) == 0


class TestAddRecitals:
    """Test appending blocks to the sheet."""

    def test_first_block_starts_below_used_range(self, store, settings, workbook_path):
        added = HistoryService(store, settings).add_recitals([_recital()])
        assert added == 1

        ws = _history_sheet(workbook_path)
        assert ws["A5"].value == datetime(2019, 11, 4)
        assert ws["A5"].number_format == "m/d/yyyy"
        assert ws["A6"].value == "12:00"
        assert ws["B6"].value == "Tabernacle"
        assert ws["A7"].value == "2:00"
        assert ws["B7"].value == "Conference Center"
        assert [ws.cell(row=8, column=col).value for col in range(1, 7)] == HEADER
        assert ws["D9"].value == "Venite!"
        assert ws["C12"].value == 87
        assert ws["F13"].value == "=SUM(F9:F12)"

    def test_formatting(self, store, settings, workbook_path):
        HistoryService(store, settings).add_recitals([_recital()])
        ws = _history_sheet(workbook_path)

        merged = {str(cell_range) for cell_range in ws.merged_cells.ranges}
        assert {"A5:F5", "B6:F6", "B7:F7"} <= merged

        assert ws["A5"].font.bold
        assert ws["A8"].font.bold
        assert ws["A8"].fill.fgColor.rgb.endswith("000000")
        assert ws["F13"].font.bold
        assert ws["F9"].number_format == "0.00"

        # Banding on rows whose zero-based index is even
        assert ws["A9"].fill.fgColor.rgb.endswith("DADADA")
        assert ws["A10"].fill.fill_type is None
        assert ws["A11"].fill.fgColor.rgb.endswith("DADADA")

    def test_blocks_are_separated_by_three_rows(self, store, settings, workbook_path):
        HistoryService(store, settings).add_recitals([_recital(), _recital(43780, ROWS[:1])])
        ws = _history_sheet(workbook_path)

        # First block ends with its total on row 13
        assert ws["A14"].value is None
        assert ws["A16"].value is None
        assert ws["A17"].value == datetime(2019, 11, 11)
        assert ws["D21"].value == "Venite!"
        assert ws["F22"].value == "=SUM(F21:F21)"

    def test_previous_blocks_untouched(self, make_workbook, settings):
        path = make_workbook()
        HistoryService(WorkbookStore(str(path)), settings).add_recitals([_recital()])
        HistoryService(WorkbookStore(str(path)), settings).add_recitals([_recital(43780)])

        ws = _history_sheet(path)
        assert ws["A5"].value == datetime(2019, 11, 4)
        assert ws["F13"].value == "=SUM(F9:F12)"
        assert ws["A17"].value == datetime(2019, 11, 11)
        assert ws["F25"].value == "=SUM(F21:F24)"

    def test_empty_repertoire_total(self, store, settings, workbook_path):
        HistoryService(store, settings).add_recitals([_recital(rows=[])])
        ws = _history_sheet(workbook_path)

        assert ws["F9"].value == 0

    def test_one_sync_per_block(self, store, settings):
        HistoryService(store, settings).add_recitals([_recital(), _recital(43780)])
        assert store.sync_count == 2
