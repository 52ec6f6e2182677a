"""
Tests for stamping performance dates into the repertoire table.
"""

import openpyxl

from backend.models.recital import Recital
from services.performance_dates_service import PerformanceDatesService

# Performance history starts at column D1 (F), the sixth table column
DATE_COLUMN = 5


def _recital(stamp, *ids):
    rows = [["", "", composition_id, f"Piece {composition_id}", "Composer", 5, "", ""]
            for composition_id in ids]
    return Recital.create(stamp, "Brian Mathias", "", "", rows)


def _history(path, row):
    ws = openpyxl.load_workbook(path)["Repertoire"]
    return [ws.cell(row=row, column=col).value for col in range(6, 10)]


class TestUpdatePerformanceDates:
    """Test the shifting date history."""

    def test_new_date_shifts_history(self, store, settings, workbook_path):
        service = PerformanceDatesService(store, settings)
        result = service.update_performance_dates([_recital(43773, 87, 12)], DATE_COLUMN)

        assert result == {'updated': 2, 'missing': []}
        # ID 87 is on sheet row 5, ID 12 on row 2
        assert _history(workbook_path, 5) == [43773, 43000, 42000, 41000]
        assert _history(workbook_path, 2) == [43773, 43000, None, None]

    def test_duplicate_id_updates_topmost_row(self, store, settings, workbook_path):
        PerformanceDatesService(store, settings).update_performance_dates(
            [_recital(43773, 87)], DATE_COLUMN
        )

        assert _history(workbook_path, 5)[0] == 43773
        assert _history(workbook_path, 6) == [39000, None, None, None]

    def test_missing_id_skipped(self, store, settings, workbook_path):
        service = PerformanceDatesService(store, settings)
        result = service.update_performance_dates([_recital(43773, 999, 34)], DATE_COLUMN)

        assert result == {'updated': 1, 'missing': [999]}
        assert _history(workbook_path, 3) == [43773, None, None, None]

    def test_each_recital_sees_previous_writes(self, store, settings, workbook_path):
        service = PerformanceDatesService(store, settings)
        service.update_performance_dates([_recital(43773, 56), _recital(43780, 56)], DATE_COLUMN)

        assert _history(workbook_path, 4) == [43780, 43773, 42500, 42000]

    def test_one_sync_per_recital(self, store, settings):
        service = PerformanceDatesService(store, settings)
        service.update_performance_dates(
            [_recital(43773, 12, 34), _recital(43780, 56), _recital(43787)], DATE_COLUMN
        )
        assert store.sync_count == 3

    def test_other_columns_untouched(self, store, settings, workbook_path):
        PerformanceDatesService(store, settings).update_performance_dates(
            [_recital(43773, 87)], DATE_COLUMN
        )

        ws = openpyxl.load_workbook(workbook_path)["Repertoire"]
        assert ws["B5"].value == "Carillon de Westminster"
        assert ws["K5"].value is None
        assert ws["L5"].value == "1"
