# sales_reports/state.py
"""
Centralized State Management for the Sales Reports page
Keeps the report orchestrator and UI flags across Streamlit reruns
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, MutableMapping, Optional

import streamlit as st

from .orchestrator import ReportOrchestrator

logger = logging.getLogger(__name__)


class StateManager:
    """
    Session state for the reports UI
    Single source of truth for the orchestrator and page flags
    """

    # State keys
    ORCHESTRATOR = 'sales_report_orchestrator'
    UI_FLAGS = 'sales_report_ui_flags'
    LAST_EXPORT = 'sales_report_last_export'
    LOADED_AT = 'sales_report_loaded_at'

    def __init__(self, store: Optional[MutableMapping] = None):
        """
        Args:
            store: Mapping to keep state in (defaults to st.session_state)
        """
        self.store = store if store is not None else st.session_state
        self.init_state()

    def init_state(self):
        """Initialize all default states"""
        if self.UI_FLAGS not in self.store:
            self.store[self.UI_FLAGS] = {
                'show_success': False,
                'show_error': False,
                'message': '',
                'exporting': False,
            }

        if self.LAST_EXPORT not in self.store:
            self.store[self.LAST_EXPORT] = None

        if self.LOADED_AT not in self.store:
            self.store[self.LOADED_AT] = None

    # ==================== Orchestrator ====================

    def get_orchestrator(self, factory: Callable[[], ReportOrchestrator]) -> ReportOrchestrator:
        """Return the session's orchestrator, creating and loading it on first use"""
        orchestrator = self.store.get(self.ORCHESTRATOR)
        if orchestrator is None:
            orchestrator = factory()
            orchestrator.load()
            self.store[self.ORCHESTRATOR] = orchestrator
            self.store[self.LOADED_AT] = datetime.now()
            logger.info("🆕 Report orchestrator created for session")
        return orchestrator

    def refresh(self):
        """Reload data into the existing orchestrator"""
        orchestrator = self.store.get(self.ORCHESTRATOR)
        if orchestrator is not None:
            orchestrator.load()
            self.store[self.LOADED_AT] = datetime.now()

    def get_loaded_at(self) -> Optional[datetime]:
        return self.store.get(self.LOADED_AT)

    def clear(self):
        """Drop the orchestrator so the next rerun starts fresh"""
        self.store.pop(self.ORCHESTRATOR, None)
        self.store[self.LOADED_AT] = None
        logger.debug("Report session state cleared")

    # ==================== UI Flags ====================

    def set_export_state(self, exporting: bool):
        self.store[self.UI_FLAGS]['exporting'] = exporting

    def is_exporting(self) -> bool:
        return self.store[self.UI_FLAGS].get('exporting', False)

    def record_export(self, filename: str, export_format: str):
        self.store[self.LAST_EXPORT] = {
            'filename': filename,
            'format': export_format,
            'timestamp': datetime.now(),
        }

    def get_last_export(self) -> Optional[Dict[str, Any]]:
        return self.store.get(self.LAST_EXPORT)

    def show_success(self, message: str):
        flags = self.store[self.UI_FLAGS]
        flags['show_success'] = True
        flags['show_error'] = False
        flags['message'] = message

    def show_error(self, message: str):
        flags = self.store[self.UI_FLAGS]
        flags['show_success'] = False
        flags['show_error'] = True
        flags['message'] = message

    def pop_message(self) -> Optional[Dict[str, Any]]:
        """Return the pending message (if any) and clear it"""
        flags = self.store[self.UI_FLAGS]
        if not (flags['show_success'] or flags['show_error']):
            return None
        message = {'type': 'success' if flags['show_success'] else 'error',
                   'text': flags['message']}
        flags['show_success'] = False
        flags['show_error'] = False
        flags['message'] = ''
        return message
