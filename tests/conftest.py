"""
Pytest configuration and fixtures for recital workflow tests.

Fixtures build a small planning workbook with openpyxl that has the same
sheets, tables and named ranges as the production workbook.
"""

import pytest
from pathlib import Path

import openpyxl
from openpyxl.utils import get_column_letter
from openpyxl.utils.cell import absolute_coordinate, quote_sheetname
from openpyxl.workbook.defined_name import DefinedName
from openpyxl.worksheet.table import Table

from backend.config import Settings
from services.workbook_service import WorkbookStore


REPERTOIRE_HEADER = [
    "ID", "Title", "Composer", "Length", "Tab",
    "D1", "D2", "D3", "D4",
    "O1", "O2", "O3", "O4"
]

# Performance history starts at column D1
DATE_COLUMN = 5

DEFAULT_REPERTOIRE = [
    [12, "Venite!", "John Leavitt", 4, "10", 43000, None, None, None, 1, None, None, None],
    [34, "Flute Solo", "Thomas Arne", 3.5, None, None, None, None, None, None, 1, None, None],
    [56, "My Shepherd Will Supply My Need", "Dale Wood", 5, None, 42500, 42000, None, None, 1, 1, None, None],
    [87, "Carillon de Westminster", "Louis Vierne", 7, "25", 43000, 42000, 41000, 40000, None, None, "1", None],
    [87, "Carillon de Westminster (duplicate)", "Louis Vierne", 7, None, 39000, None, None, None, None, None, None, None],
]

DEFAULT_SLOTS = [
    {
        'date': 43773,
        'v12': "Tabernacle",
        'v2': "Conference Center",
        'rows': [
            ["1.", None, 12, "Venite!", "John Leavitt", 4, "10", "1A"],
            ["2.", "a.", 34, "Flute Solo", "Thomas Arne", 3.5, None, None],
            [None, "b.", 56, "My Shepherd Will Supply My Need", "Dale Wood", 5, None, None],
            ["3.", "a.", 87, "Carillon de Westminster", "Louis Vierne", 7, "25", "23A"],
            [None, None, None, None, None, None, None, None],
        ]
    },
    {
        # Populated slot without a date is not a recital
        'date': None,
        'v12': "Tabernacle",
        'v2': None,
        'rows': [
            ["1.", None, 12, "Venite!", "John Leavitt", 4, "10", "1A"],
        ]
    },
]

SLOT_HEIGHT = 10
BLOCK_ROWS = 5

EXISTING_LOG_ROW = ["2019-10-28", "10/28", '{"date":"2019-10-28","recitals":[]}', None]


def _add_name(workbook, name: str, sheet: str, ref: str):
    workbook.defined_names[name] = DefinedName(
        name, attr_text=f"{quote_sheetname(sheet)}!{absolute_coordinate(ref)}"
    )


def build_workbook(path: Path, options=None, slots=None, repertoire=None) -> Path:
    """Write a planning workbook to path and return the path."""
    slots = DEFAULT_SLOTS if slots is None else slots
    repertoire = DEFAULT_REPERTOIRE if repertoire is None else repertoire

    option_values = {
        'OpPerformer': "Brian Mathias",
        'OpUpdateDates': "Y",
        'OpAddToHistory': "Y",
        'OpDateColumn': DATE_COLUMN,
        'OpRecitalCount': len(slots),
        'OpRepFieldName': "Recital{{index}}",
        'OpDateFieldName': "Recital{{index}}D",
        'OpV12FieldName': "Recital{{index}}V12",
        'OpV2FieldName': "Recital{{index}}V2",
    }
    option_values.update(options or {})

    wb = openpyxl.Workbook()

    # Repertoire
    ws = wb.active
    ws.title = "Repertoire"
    ws.append(REPERTOIRE_HEADER)
    for row in repertoire:
        ws.append(row)
    last_col = get_column_letter(len(REPERTOIRE_HEADER))
    ws.add_table(Table(displayName="RepertoireList", ref=f"A1:{last_col}{len(repertoire) + 1}"))

    # Recital Planning
    ws = wb.create_sheet("Recital Planning")
    for index, slot in enumerate(slots, start=1):
        top = (index - 1) * SLOT_HEIGHT + 1
        ws.cell(row=top, column=2, value=slot['date'])
        ws.cell(row=top + 1, column=2, value=slot['v12'])
        ws.cell(row=top + 2, column=2, value=slot['v2'])
        for row_offset, row in enumerate(slot['rows']):
            for col_offset, value in enumerate(row):
                ws.cell(row=top + 4 + row_offset, column=1 + col_offset, value=value)

        _add_name(wb, f"Recital{index}D", "Recital Planning", f"B{top}")
        _add_name(wb, f"Recital{index}V12", "Recital Planning", f"B{top + 1}")
        _add_name(wb, f"Recital{index}V2", "Recital Planning", f"B{top + 2}")
        _add_name(wb, f"Recital{index}", "Recital Planning",
                  f"A{top + 4}:H{top + 4 + BLOCK_ROWS - 1}")

    # Recital History
    wb.create_sheet("Recital History")

    # Workflow Log
    ws = wb.create_sheet("Workflow Log")
    ws.append(["Date", "Recitals", "JSON", "Notes"])
    ws.append(EXISTING_LOG_ROW)
    ws.add_table(Table(displayName="WorkflowLog", ref="A1:D2"))

    # Workflow Options
    ws = wb.create_sheet("Workflow Options")
    for row, (name, value) in enumerate(option_values.items(), start=1):
        ws.cell(row=row, column=1, value=name)
        ws.cell(row=row, column=2, value=value)
        _add_name(wb, name, "Workflow Options", f"B{row}")

    wb.save(path)
    return path


@pytest.fixture
def make_workbook(tmp_path):
    """Factory for planning workbooks with custom options, slots or repertoire."""
    def _make(name: str = 'recitals.xlsx', **kwargs) -> Path:
        return build_workbook(tmp_path / name, **kwargs)
    return _make


@pytest.fixture
def workbook_path(make_workbook):
    """Default planning workbook."""
    return make_workbook()


@pytest.fixture
def store(workbook_path):
    """Open store on the default planning workbook."""
    return WorkbookStore(str(workbook_path))


@pytest.fixture
def settings():
    """Settings with the production sheet and range names."""
    return Settings()
