"""
Workflow Log Service - Audit trail of workflow runs.

Every run adds one row to the top of the WorkflowLog table:

    [run date, recital dates, JSON, notes]

The JSON holds the complete recital collection, so any run can be
reconstructed from its log row.
"""

import json
import logging
from datetime import date, datetime
from typing import List, Optional

from backend.config import Settings, get_settings
from backend.models.recital import Recital
from services.workbook_service import WorkbookStore

logger = logging.getLogger(__name__)


def format_run_date(run_date: date) -> str:
    """YYYY-MM-DD, zero padded."""
    return f"{run_date.year:04d}-{run_date.month:02d}-{run_date.day:02d}"


def summarize_recital_dates(recitals: List[Recital]) -> str:
    """Ex: '11/4, 11/11'"""
    return ", ".join(recital.short_date() for recital in recitals)


def build_log_json(run_date_string: str, recitals: List[Recital]) -> str:
    """Serialize a run as {"date": ..., "recitals": [...]} without whitespace."""
    data = {
        'date': run_date_string,
        'recitals': [recital.to_log_dict() for recital in recitals]
    }
    return json.dumps(data, separators=(',', ':'), ensure_ascii=False)


class WorkflowLogService:
    """Writes the audit row for a workflow run."""

    def __init__(self, store: WorkbookStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def add_entry(self, recitals: List[Recital], run_date: Optional[date] = None) -> List[str]:
        """
        Insert the run's log row at the top of the log table and sync.

        Args:
            recitals: Recitals built in this run
            run_date: Date of the run (default: today, local time)

        Returns:
            The row written
        """
        run_date = run_date or datetime.now().date()
        run_date_string = format_run_date(run_date)

        entry = [
            run_date_string,
            summarize_recital_dates(recitals),
            build_log_json(run_date_string, recitals),
            ""
        ]

        self.store.insert_table_row(
            self.settings.WORKFLOW_LOG_SHEET,
            self.settings.WORKFLOW_LOG_TABLE,
            0,
            entry
        )
        self.store.sync()

        logger.info(f"Workflow log entry added for {run_date_string} ({entry[1] or 'no recitals'})")
        return entry
