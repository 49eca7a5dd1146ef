"""
audit.py — Fire-and-forget audit events for scrape runs.

Events go to the application log and, when a JobStore is attached, to the
audit_log table. A failing sink never breaks the run that emitted the event.
"""

import sqlite3
from typing import Optional

from database import JobStore
from monitoring import get_logger

logger = get_logger("audit")

RUN_STARTED = "run-started"
RUN_COMPLETED = "run-completed"
RUN_FAILED = "run-failed"
CONTINUOUS_COMPLETED = "continuous-completed"


class AuditLogger:
    def __init__(self, store: Optional[JobStore] = None):
        self.store = store

    def log(self, action: str, resource: str = "scraping", metadata: Optional[dict] = None):
        metadata = metadata or {}
        logger.info(f"[AUDIT] {action}: {metadata}")
        if self.store is None:
            return
        try:
            self.store.log_audit_event(action, resource, metadata)
        except sqlite3.Error as e:
            logger.error(f"Failed to write audit log for {action}: {e}")
