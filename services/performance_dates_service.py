"""
Performance Dates Service - Stamps recital dates into the repertoire table.

Each repertoire row keeps its four most recent performance dates in
adjacent columns. Recording a recital shifts that history one column to
the right and puts the recital's date stamp in front.
"""

import logging
from typing import Any, Dict, List, Optional

from backend.config import Settings, get_settings
from backend.models.recital import Recital
from services.workbook_service import WorkbookStore

logger = logging.getLogger(__name__)

HISTORY_WIDTH = 4


class PerformanceDatesService:
    """Writes recital date stamps into the repertoire lookup table."""

    def __init__(self, store: WorkbookStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def update_performance_dates(self, recitals: List[Recital], date_column: int) -> Dict[str, Any]:
        """
        Record every composition of every recital in the repertoire table.

        The table is re-read before each recital and the workbook synced
        after it, so a piece played at two recitals in one run shifts twice.
        Compositions missing from the table are skipped with a warning.
        Duplicate IDs resolve to the topmost matching row.

        Args:
            recitals: Recitals in run order
            date_column: First history column, relative to the table's first column

        Returns:
            {'updated': int, 'missing': [composition ids not found]}
        """
        sheet = self.settings.REPERTOIRE_SHEET
        table_name = self.settings.REPERTOIRE_TABLE

        updated = 0
        missing = []

        for recital in recitals:
            table = self.store.read_table(sheet, table_name)

            for composition in recital.repertoire:
                row_index = table.find_row(composition.id)
                if row_index is None:
                    logger.warning(f"Composition {composition.id} ({composition.title}) "
                                   f"not found in {table_name}; performance date not recorded")
                    missing.append(composition.id)
                    continue

                row = table.values[row_index]
                previous = [
                    row[col] if col < len(row) else None
                    for col in range(date_column, date_column + HISTORY_WIDTH - 1)
                ]

                self.store.write_range(
                    sheet,
                    table.first_row + row_index,
                    table.first_col + date_column,
                    [[recital.date_stamp] + previous]
                )
                updated += 1

            self.store.sync()
            logger.debug(f"Recorded {recital.date_string} for {len(recital.repertoire)} compositions")

        logger.info(f"Performance dates updated: {updated} rows, {len(missing)} missing")
        return {'updated': updated, 'missing': missing}
