"""Unread-count badge driven by the session lifecycle."""
import threading
from typing import Protocol

import structlog
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from nepp.schemas.session import Session
from nepp.services.auth_state import AuthStateBroadcaster
from nepp.services.notification_store import NotificationStore

logger = structlog.get_logger(__name__)

BADGE_JOB_ID = "unread_badge_refresh"
MAX_BADGE_COUNT = 99


def badge_label(count: int | None) -> str | None:
    """Badge text for ``count``; ``None`` means the badge is hidden."""
    if not count or count <= 0:
        return None
    if count > MAX_BADGE_COUNT:
        return f"{MAX_BADGE_COUNT}+"
    return str(count)


class BadgeView(Protocol):
    """Display surface for the badge."""

    def show(self, label: str) -> None:
        ...

    def hide(self) -> None:
        ...


class BadgeState:
    """In-memory badge, read back by the API."""

    def __init__(self):
        self.visible = False
        self.label: str | None = None

    def show(self, label: str) -> None:
        self.visible = True
        self.label = label

    def hide(self) -> None:
        self.visible = False
        self.label = None


class BadgePoller:
    """Refreshes the badge while a session is active.

    Starts on sign-in (immediate refresh, then every ``interval_seconds``) and
    stops on sign-out, hiding the badge.
    """

    def __init__(
        self,
        broadcaster: AuthStateBroadcaster,
        store: NotificationStore,
        view: BadgeView,
        scheduler: BaseScheduler,
        interval_seconds: float = 30.0,
    ):
        self.broadcaster = broadcaster
        self.store = store
        self.view = view
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self._user_id: str | None = None
        self._lock = threading.Lock()
        self._unsubscribe = broadcaster.subscribe(self._on_auth_change)

    @property
    def is_polling(self) -> bool:
        return self._user_id is not None

    def refresh(self) -> str | None:
        """Query the unread count once and update the view."""
        user_id = self._user_id
        if not user_id:
            return None
        try:
            label = badge_label(self.store.get_unread_count(user_id))
        except Exception as e:
            logger.error("badge_refresh_failed", user_id=user_id, error=str(e))
            label = None

        with self._lock:
            if self._user_id != user_id:
                # signed out or switched user while the count was in flight
                logger.debug("badge_refresh_discarded", user_id=user_id)
                return None
            if label:
                self.view.show(label)
            else:
                self.view.hide()
        return label

    def close(self) -> None:
        self._unsubscribe()
        self._stop()

    def _on_auth_change(self, session: Session | None) -> None:
        if session:
            self._start(session.id)
        else:
            self._stop()

    def _start(self, user_id: str) -> None:
        with self._lock:
            self._user_id = user_id
            # a second sign-in replaces the previous user's timer
            self._remove_job()
            self.scheduler.add_job(
                self.refresh,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id=BADGE_JOB_ID,
                name="Refresh unread badge",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
        logger.info("badge_polling_started", user_id=user_id)
        self.refresh()

    def _stop(self) -> None:
        with self._lock:
            was_polling = self._user_id is not None
            self._user_id = None
            self._remove_job()
            self.view.hide()
        if was_polling:
            logger.info("badge_polling_stopped")

    def _remove_job(self) -> None:
        try:
            self.scheduler.remove_job(BADGE_JOB_ID)
        except JobLookupError:
            pass
