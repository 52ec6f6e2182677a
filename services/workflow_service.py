"""
Workflow Service - Runs the complete recital workflow.

Stages run strictly in order:

    1. Build recitals from the planning sheet
    2. Stamp performance dates into the repertoire table (if enabled)
    3. Append recitals to the recital history (if enabled)
    4. Add the run to the workflow log

A failure in any stage stops the run. Stages already synced stay in the
workbook; nothing is rolled back.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from backend.config import Settings, get_settings
from services.history_service import HistoryService
from services.performance_dates_service import PerformanceDatesService
from services.recital_service import RecitalService
from services.workbook_service import WorkbookStore
from services.workflow_log_service import WorkflowLogService

logger = logging.getLogger(__name__)


class RecitalWorkflowService:
    """
    Framework-agnostic workflow runner.

    Progress is reported through an optional callback so the CLI (or any
    other front end) can show the run log.
    """

    def __init__(
        self,
        store: WorkbookStore,
        settings: Optional[Settings] = None,
        progress_callback: Optional[Callable[[str, float, str], None]] = None
    ):
        """
        Initialize workflow service.

        Args:
            store: Open planning workbook
            settings: Sheet, table and range names
            progress_callback: Optional callback for progress updates
                              Signature: callback(stage: str, percent: float, message: str)
        """
        self.store = store
        self.settings = settings or get_settings()
        self.progress_callback = progress_callback or (lambda *args: None)

        self.recital_service = RecitalService(store, self.settings)
        self.dates_service = PerformanceDatesService(store, self.settings)
        self.history_service = HistoryService(store, self.settings)
        self.log_service = WorkflowLogService(store, self.settings)

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update via callback."""
        self.progress_callback(stage, percent, message)
        logger.info(f"Progress: {stage} ({percent:.1f}%) - {message}")

    def run(self, run_date: Optional[date] = None) -> Dict[str, Any]:
        """
        Main workflow.

        Args:
            run_date: Date recorded in the workflow log (default: today)

        Returns:
            Dictionary with run results:
            {
                'recitals': [Recital, ...],
                'options': WorkflowOptions,
                'dates': {'updated': int, 'missing': [...]} or None,
                'history_added': int,
                'log_entry': [run date, recital dates, json, notes]
            }
        """
        self._emit_progress('starting', 0, 'Starting workflow...')

        options = self.recital_service.load_options()
        recitals = self.recital_service.build_recitals(options)
        self._emit_progress('recitals', 25, f"{len(recitals)} recitals found.")

        dates_result = None
        if options.update_dates:
            dates_result = self.dates_service.update_performance_dates(recitals, options.date_column)
            self._emit_progress('dates', 50, 'Performance dates updated.')
            for composition_id in dates_result['missing']:
                self._emit_progress('dates', 50, f"Composition {composition_id} not found in repertoire list.")

        history_added = 0
        if options.add_to_history:
            history_added = self.history_service.add_recitals(recitals)
            self._emit_progress('history', 75, f"{history_added} recitals added to recital history.")

        log_entry = self.log_service.add_entry(recitals, run_date)
        self._emit_progress('log', 90, 'JSON added to workflow log.')

        self._emit_progress('complete', 100, 'Workflow complete.')

        return {
            'recitals': recitals,
            'options': options,
            'dates': dates_result,
            'history_added': history_added,
            'log_entry': log_entry
        }
