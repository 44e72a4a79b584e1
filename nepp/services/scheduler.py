"""
Due-date notification scheduler.

Runs the form due-date check on a fixed interval using APScheduler.

State Machine:
    STOPPED --(start)--> RUNNING --(stop)--> STOPPED

``start`` runs one check cycle immediately, then arms an interval job.
Overlapping ticks are suppressed by the job's ``max_instances=1``; an
in-flight cycle may finish after ``stop`` and relies on reminder
deduplication to stay harmless.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from nepp.services.notification_dispatch import NotificationDispatcher

logger = structlog.get_logger(__name__)

CHECK_JOB_ID = "form_due_date_check"
AUTOSTART_JOB_ID = "form_due_date_autostart"


@dataclass
class SchedulerState:
    """In-memory only; a restart begins STOPPED."""

    is_running: bool = False
    last_check_at: datetime | None = None
    last_result: int | None = None
    last_error: str | None = None


class NotificationScheduler:
    """Periodic due-date reminder check."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        scheduler: BaseScheduler,
        check_interval_seconds: float = 60 * 60,
        reminder_days: int = 1,
    ):
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.check_interval_seconds = check_interval_seconds
        self.reminder_days = reminder_days
        self.state = SchedulerState()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    def start(self) -> None:
        with self._lock:
            if self.state.is_running:
                logger.warning("notification_scheduler_already_running")
                return
            self.state.is_running = True

        logger.info(
            "notification_scheduler_started",
            interval_seconds=self.check_interval_seconds,
        )
        self.run_checks()

        with self._lock:
            # stop() may have been called while the first cycle ran
            if not self.state.is_running:
                return
            self.scheduler.add_job(
                self.run_checks,
                trigger=IntervalTrigger(seconds=self.check_interval_seconds),
                id=CHECK_JOB_ID,
                name="Check form due dates",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )

    def stop(self) -> None:
        with self._lock:
            if not self.state.is_running:
                logger.warning("notification_scheduler_not_running")
                return
            self.state.is_running = False
            self._remove_job(CHECK_JOB_ID)
        logger.info("notification_scheduler_stopped")

    def run_checks(self) -> int:
        """One check cycle. Never raises, so the interval job keeps firing."""
        created = 0
        error = None
        try:
            logger.debug("notification_checks_running")
            created = self.dispatcher.dispatch_due_date_reminders(self.reminder_days)
            if created:
                logger.info("form_due_notifications_created", count=created)
        except Exception as e:
            error = str(e)
            logger.error("notification_checks_failed", error=error)

        with self._lock:
            now = datetime.now(timezone.utc)
            if self.state.last_check_at is None or now > self.state.last_check_at:
                self.state.last_check_at = now
            self.state.last_result = None if error else created
            self.state.last_error = error
        return created

    def manual_check(self) -> int:
        """Run a cycle on demand without waiting for the timer."""
        logger.info("notification_manual_check")
        return self.run_checks()

    def schedule_autostart(self, delay_seconds: float = 5.0) -> None:
        """Start after ``delay_seconds`` so dependent services can finish wiring."""
        run_at = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        self.scheduler.add_job(
            self.start,
            trigger=DateTrigger(run_date=run_at),
            id=AUTOSTART_JOB_ID,
            name="Start due-date scheduler",
            replace_existing=True,
        )
        logger.info("notification_scheduler_autostart_armed", delay_seconds=delay_seconds)

    def shutdown(self) -> None:
        """Teardown hook: cancel a pending autostart and stop if running."""
        self._remove_job(AUTOSTART_JOB_ID)
        if self.state.is_running:
            self.stop()

    def _remove_job(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass
