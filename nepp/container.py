"""Service container.

Builds every notification service once, in dependency order, and hands out
references. Dispatch receives the store it writes through; nothing is looked
up lazily at call time.
"""
from collections.abc import Callable
from datetime import date

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.orm import Session

from nepp.config import Settings
from nepp.services.auth_state import AuthStateBroadcaster, IdentityProvider, LocalIdentityProvider
from nepp.services.badge import BadgePoller, BadgeState, BadgeView
from nepp.services.notification_dispatch import NotificationDispatcher
from nepp.services.notification_store import NotificationStore
from nepp.services.scheduler import NotificationScheduler

logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Owns the timer backend and the services built on it.

    Example:
        >>> container = ServiceContainer(settings, SessionLocal)
        >>> container.start()
        >>> container.dispatcher.dispatch_welcome("uid-1", "ada@example.com")
        >>> container.shutdown()
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: Callable[[], Session],
        identity_provider: IdentityProvider | None = None,
        timer: BaseScheduler | None = None,
        badge_view: BadgeView | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.identity_provider = identity_provider or LocalIdentityProvider()
        self.timer = timer or BackgroundScheduler(timezone="UTC")

        self.broadcaster = AuthStateBroadcaster(self.identity_provider)
        self.store = NotificationStore(session_factory)
        self.dispatcher = NotificationDispatcher(self.store, clock=clock)
        self.scheduler = NotificationScheduler(
            self.dispatcher,
            self.timer,
            check_interval_seconds=settings.scheduler_check_interval_seconds,
            reminder_days=settings.reminder_days,
        )
        self.badge = badge_view or BadgeState()
        self.badge_poller = BadgePoller(
            self.broadcaster,
            self.store,
            self.badge,
            self.timer,
            interval_seconds=settings.badge_poll_interval_seconds,
        )

        logger.info("service_container_initialized")

    def start(self) -> None:
        """Start the timer backend and arm the scheduler autostart."""
        if not self.timer.running:
            self.timer.start()
        if isinstance(self.identity_provider, LocalIdentityProvider) and not self.broadcaster.is_initialized:
            # nothing to restore across restarts; report "signed out"
            self.identity_provider.restore(None)
        if self.settings.scheduler_autostart:
            self.scheduler.schedule_autostart(self.settings.scheduler_autostart_delay_seconds)

    def shutdown(self) -> None:
        """Teardown: stop polling and the scheduler, then the timer backend."""
        self.scheduler.shutdown()
        self.badge_poller.close()
        self.broadcaster.close()
        if self.timer.running:
            self.timer.shutdown(wait=False)
        logger.info("service_container_shutdown")
