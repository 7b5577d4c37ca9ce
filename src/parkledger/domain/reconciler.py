"""Periodic category sync with drift reporting."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from parkledger.database.base import Database
from parkledger.domain.category_sync import CategorySyncService
from parkledger.logging_config import get_logger
from parkledger.utils.resilience import resilient

logger = get_logger("reconciler")


@dataclass(frozen=True)
class ReconciliationReport:
    """Result of one reconciliation pass."""

    accounting_count: int
    income_count: int
    expense_count: int
    last_sync: Optional[datetime]
    in_sync: bool
    warnings: list = field(default_factory=list)


class SyncReconciler:
    """Re-runs category sync on demand or on a fixed interval.

    Every pass opens its own Database from db_factory and closes it when
    done, so the timer thread never shares a session with the caller.
    """

    def __init__(
        self,
        db_factory: Callable[[], Database],
        interval_seconds: Optional[float] = None,
        max_attempts: int = 3,
        base_delay: float = 0.5,
    ):
        """Initialize reconciler.

        Args:
            db_factory: Callable returning a fresh Database
            interval_seconds: Delay between passes once start() is called
            max_attempts: Attempts per sync before a pass fails
            base_delay: First retry delay for a failing sync
        """
        if interval_seconds is not None and interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.db_factory = db_factory
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._timer: Optional[threading.Timer] = None
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self.runs = 0
        self.failures = 0
        self.last_report: Optional[ReconciliationReport] = None

    def run_once(self) -> ReconciliationReport:
        """Sync categories once and report whether the tables now match the catalog."""
        db = self.db_factory()
        try:
            service = CategorySyncService(db)
            sync = resilient(
                service.sync_financial_categories,
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
            )
            result = sync()
            in_sync = service.check_sync_status()
        finally:
            db.disconnect()

        report = ReconciliationReport(
            accounting_count=result.accounting_count,
            income_count=result.income_count,
            expense_count=result.expense_count,
            last_sync=result.synced_at,
            in_sync=in_sync,
            warnings=result.warnings,
        )
        if not in_sync:
            logger.warning("Finance categories still differ from the catalog after sync")
        self.last_report = report
        return report

    def _tick(self) -> None:
        try:
            self.run_once()
        except Exception:
            # A failed pass must not end the schedule
            self.failures += 1
            logger.exception("Scheduled category sync failed")
        finally:
            self.runs += 1
            self._schedule()

    def _schedule(self) -> None:
        with self._lock:
            if self._stopped.is_set():
                return
            self._timer = threading.Timer(self.interval_seconds, self._tick)
            self._timer.daemon = True
            self._timer.start()

    def start(self) -> None:
        """Start running passes every interval_seconds."""
        if self.interval_seconds is None:
            raise ValueError("interval_seconds is required to start the reconciler")
        self._stopped.clear()
        logger.info("Starting category reconciler every %ss", self.interval_seconds)
        self._schedule()

    def stop(self) -> None:
        """Stop the schedule; a pass already running finishes first."""
        with self._lock:
            self._stopped.set()
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            if timer is not threading.current_thread():
                timer.join()
        logger.info("Stopped category reconciler")

    @property
    def running(self) -> bool:
        return not self._stopped.is_set() and self._timer is not None
