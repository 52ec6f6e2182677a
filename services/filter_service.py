"""
Filter Service - Recital order filters on the repertoire table.

The repertoire table has one column per upcoming recital (O1..O4) marking
the pieces scheduled for it with "1". Filtering on one of them shows that
recital's pieces; clearing removes all four filters.
"""

import logging
from typing import Optional, Union

from backend.config import Settings, get_settings
from services.workbook_service import WorkbookStore

logger = logging.getLogger(__name__)

CLEAR = "clear"


class FilterService:
    """Toggles the recital order filters. Independent of the workflow run."""

    def __init__(self, store: WorkbookStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def _parse_index(self, index: Union[int, str, None]) -> Optional[int]:
        if index is None or (isinstance(index, str) and index.strip().lower() == CLEAR):
            return None

        message = (f"Filter index must be 1-{len(self.settings.FILTER_COLUMNS)} "
                   f"or '{CLEAR}', got {index!r}")
        try:
            number = int(index)
        except (TypeError, ValueError):
            raise ValueError(message)

        # int() truncates 2.5 to 2
        if number != index and str(number) != str(index).strip():
            raise ValueError(message)

        if number == -1:
            return None
        if not 1 <= number <= len(self.settings.FILTER_COLUMNS):
            raise ValueError(message)
        return number

    def filter(self, index: Union[int, str, None]) -> Optional[str]:
        """
        Clear the recital order filters, then filter on one column.

        Args:
            index: 1-4 to show that recital's pieces; 'clear', -1 or None to only clear

        Returns:
            Name of the filtered column, or None when cleared
        """
        number = self._parse_index(index)
        sheet = self.settings.REPERTOIRE_SHEET
        table = self.settings.REPERTOIRE_TABLE

        for column in self.settings.FILTER_COLUMNS:
            self.store.clear_filter(sheet, table, column)

        column = None
        if number is not None:
            column = self.settings.FILTER_COLUMNS[number - 1]
            self.store.apply_filter(sheet, table, column, [self.settings.FILTER_VALUE])
            logger.info(f"Filtered {table} on {column} = {self.settings.FILTER_VALUE}")
        else:
            logger.info(f"Cleared recital order filters on {table}")

        self.store.sync()
        return column
