"""
Recital Service - Builds recitals from the Recital Planning worksheet.

This module loads the workflow options and turns each populated recital
slot on the planning sheet into a Recital record.
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from backend.config import Settings, get_settings
from backend.models.options import WorkflowOptions
from backend.models.recital import Recital
from services.errors import ConfigurationError
from services.workbook_service import WorkbookStore

logger = logging.getLogger(__name__)


def _describe_validation_error(error: ValidationError, ranges: dict) -> str:
    problems = []
    for detail in error.errors():
        field = detail['loc'][0] if detail['loc'] else '?'
        problems.append(f"{ranges.get(field, field)} ({field}): {detail['msg']}")
    return "; ".join(problems)


def _is_empty(value) -> bool:
    return value is None or value == ''


class RecitalService:
    """
    Framework-agnostic recital builder.

    Reads only; nothing is written to the workbook.
    """

    def __init__(self, store: WorkbookStore, settings: Optional[Settings] = None):
        """
        Initialize recital service.

        Args:
            store: Open planning workbook
            settings: Sheet and range names (default: environment settings)
        """
        self.store = store
        self.settings = settings or get_settings()

    def load_options(self) -> WorkflowOptions:
        """
        Read every workflow option, then validate them together.

        Raises:
            ConfigurationError: If an option range is missing or holds a bad value
        """
        ranges = self.settings.OPTION_RANGES
        values = {}
        for field, range_name in ranges.items():
            values[field] = self.store.read_value(self.settings.WORKFLOW_OPTIONS_SHEET, range_name)

        try:
            options = WorkflowOptions(**values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid workflow options: {_describe_validation_error(e, ranges)}"
            ) from e

        logger.info(f"Loaded workflow options: performer={options.performer!r}, "
                    f"recital_count={options.recital_count}, update_dates={options.update_dates}, "
                    f"add_to_history={options.add_to_history}")
        return options

    def build_recitals(self, options: WorkflowOptions) -> List[Recital]:
        """
        Build a Recital for every planning slot that has a date.

        Slots are read for indexes 1..recital_count; a slot whose date cell
        is empty is skipped regardless of its other fields.

        Args:
            options: Validated workflow options

        Returns:
            Recitals in slot order
        """
        sheet = self.settings.RECITAL_PLANNING_SHEET

        # Read every slot before building anything
        slots = []
        for index in range(1, options.recital_count + 1):
            fields = options.field_names(index)
            slots.append({
                'index': index,
                'fields': fields,
                'date': self.store.read_value(sheet, fields['date']),
                'v12': self.store.read_value(sheet, fields['v12']),
                'v2': self.store.read_value(sheet, fields['v2']),
                'rep': self.store.read_range(sheet, fields['rep']),
            })

        recitals = []
        for slot in slots:
            if _is_empty(slot['date']):
                logger.debug(f"Recital slot {slot['index']} has no date, skipping")
                continue

            try:
                recital = Recital.create(
                    slot['date'],
                    options.performer,
                    slot['v12'],
                    slot['v2'],
                    slot['rep']
                )
            except ValueError as e:
                # pydantic's ValidationError is a ValueError
                raise ConfigurationError(
                    f"Recital slot {slot['index']} ({slot['fields']['rep']}) is malformed: {e}"
                ) from e

            logger.info(f"Recital {slot['index']}: {recital.date_string}, "
                        f"{len(recital.repertoire)} compositions")
            recitals.append(recital)

        return recitals
