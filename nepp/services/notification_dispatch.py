"""Notification dispatch for portal events.

Turns a new form, an upcoming due date or a fresh registration into
notification records. Fan-out is best effort: each recipient is attempted
independently and failures are logged, never raised into the flow that
triggered them.
"""
from collections.abc import Callable, Iterable
from datetime import date, timedelta

import structlog

from nepp.errors import NotFound, StoreUnavailable, ValidationError
from nepp.models.notification import DUE_DATE, NEW_FORM, WELCOME
from nepp.schemas.form import FormResponse
from nepp.schemas.notification import NotificationCreate
from nepp.services.notification_store import NotificationStore

logger = structlog.get_logger(__name__)

SYSTEM_SENDER = "system"
UNKNOWN_ACTOR = "Unknown User"

WELCOME_TITLE = "Welcome to NEPP!"
WELCOME_MESSAGE = (
    "Welcome to the NoVA Extracurricular Pyramid Program platform! "
    "We're excited to have you join our educational community.\n\n"
    "Please note: NEPP is currently in active development. You may encounter "
    "bugs or features that are still being refined.\n\n"
    "Get started by:\n"
    "- Joining groups with invite codes\n"
    "- Creating your first form or announcement\n"
    "- Exploring the resources section\n"
    "- Connecting with other members\n\n"
    "If you experience any issues or have suggestions, please use the "
    "feedback option in Settings."
)


def unique_recipients(user_ids: Iterable[str], exclude: str | None = None) -> list[str]:
    """Deduplicate ``user_ids`` keeping first-seen order, dropping blanks and ``exclude``."""
    seen: dict[str, None] = {}
    for user_id in user_ids:
        if user_id and user_id != exclude and user_id not in seen:
            seen[user_id] = None
    return list(seen)


def format_due_date(due: date) -> str:
    """Long form date, e.g. ``Monday, October 19, 2026``."""
    return f"{due:%A, %B} {due.day}, {due.year}"


class NotificationDispatcher:
    """Creates notification records through a :class:`NotificationStore`."""

    def __init__(
        self,
        store: NotificationStore,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.clock = clock

    def dispatch_new_form(self, form: FormResponse) -> int:
        """Notify every target user except the creator; returns notifications sent.

        Never raises: form creation must succeed whatever happens here.
        """
        try:
            recipients = unique_recipients(form.target_users, exclude=form.created_by)
            if not recipients:
                return 0

            actor_name = self._actor_name(form.created_by)
            sent = 0
            for recipient_id in recipients:
                record = NotificationCreate(
                    recipient_id=recipient_id,
                    type=NEW_FORM,
                    title="New Form Available",
                    message=f'{actor_name} posted a new form "{form.title}"',
                    sender_id=form.created_by,
                    form_id=form.id,
                    form_title=form.title,
                    actor_id=form.created_by,
                    actor_name=actor_name,
                    data={"action": "view_form"},
                    created_on=self.clock(),
                )
                try:
                    self.store.create_notification(record)
                    sent += 1
                except Exception as e:
                    logger.warning(
                        "form_notification_failed",
                        form_id=form.id,
                        recipient_id=recipient_id,
                        error=str(e),
                    )

            logger.info(
                "form_notifications_sent",
                form_id=form.id,
                title=form.title,
                sent=sent,
                recipients=len(recipients),
            )
            return sent
        except Exception as e:
            logger.error("form_notifications_failed", form_id=getattr(form, "id", None), error=str(e))
            return 0

    def dispatch_due_date_reminders(self, days: int = 1, today: date | None = None) -> int:
        """Create due-date reminders for forms due ``days`` from today.

        At most one reminder per (form, recipient, day). The form creator is
        reminded like any other target. A ``StoreUnavailable`` from the due form
        query propagates so the caller can retry on its next tick.
        """
        if days < 0:
            raise ValidationError(f"days must not be negative, got {days}")

        today = today or self.clock()
        target_date = today + timedelta(days=days)
        forms = self.store.query_due_forms(target_date)

        created = 0
        for form in forms:
            for recipient_id in unique_recipients(form.target_users):
                try:
                    if self.store.has_due_reminder(form.id, recipient_id, today):
                        continue
                except StoreUnavailable as e:
                    # Unknown state: skipping beats sending a duplicate.
                    logger.warning(
                        "due_reminder_check_failed",
                        form_id=form.id,
                        recipient_id=recipient_id,
                        error=str(e),
                    )
                    continue

                record = NotificationCreate(
                    recipient_id=recipient_id,
                    type=DUE_DATE,
                    title="Form Due Soon",
                    message=f'Form "{form.title}" is due on {format_due_date(target_date)}',
                    form_id=form.id,
                    form_title=form.title,
                    actor_id=form.created_by,
                    data={"due_date": target_date.isoformat(), "action": "view_form"},
                    created_on=today,
                )
                try:
                    self.store.create_notification(record)
                    created += 1
                except (StoreUnavailable, ValidationError) as e:
                    logger.warning(
                        "due_reminder_failed",
                        form_id=form.id,
                        recipient_id=recipient_id,
                        error=str(e),
                    )

        logger.info(
            "due_reminders_checked",
            target_date=target_date.isoformat(),
            forms=len(forms),
            created=created,
        )
        return created

    def dispatch_welcome(self, user_id: str, email: str) -> None:
        """Send the welcome notice to a new user. Failures are logged only."""
        try:
            self.store.create_notification(
                NotificationCreate(
                    recipient_id=user_id,
                    type=WELCOME,
                    title=WELCOME_TITLE,
                    message=WELCOME_MESSAGE,
                    sender_id=SYSTEM_SENDER,
                    actor_id=SYSTEM_SENDER,
                    data={"is_welcome_message": True, "user_email": email},
                    created_on=self.clock(),
                )
            )
            logger.info("welcome_notification_sent", user_id=user_id)
        except Exception as e:
            logger.error("welcome_notification_failed", user_id=user_id, error=str(e))

    def _actor_name(self, user_id: str) -> str:
        try:
            return self.store.get_display_name(user_id)
        except (NotFound, StoreUnavailable) as e:
            logger.info("form_actor_unresolved", user_id=user_id, error=str(e))
            return UNKNOWN_ACTOR
