"""Notification store access over SQLAlchemy.

Every call opens its own session through the injected factory so it can be
used from request handlers and timer threads alike. Backend failures surface
as ``StoreUnavailable``.
"""
import json
from collections.abc import Callable
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from nepp.database import session_scope
from nepp.errors import NotFound, StoreUnavailable, ValidationError
from nepp.models.form import Form, FormTarget
from nepp.models.notification import DUE_DATE, Notification
from nepp.models.user import User
from nepp.schemas.auth import UserResponse
from nepp.schemas.form import FormResponse
from nepp.schemas.notification import NotificationCreate, NotificationResponse


class NotificationStore:
    """Reads and writes notifications, forms and user profiles."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _scope(self):
        return session_scope(self._session_factory)

    # Notifications

    def get_unread_count(self, user_id: str) -> int:
        """Count unread notifications addressed to ``user_id``."""
        if not user_id:
            return 0
        try:
            with self._scope() as db:
                return (
                    db.query(Notification)
                    .filter(Notification.recipient_id == user_id, Notification.read == 0)
                    .count()
                )
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Unread count failed for {user_id}: {e}") from e

    def create_notification(self, record: NotificationCreate) -> str:
        """Persist ``record`` and return the new notification id."""
        if not record.recipient_id:
            raise ValidationError("Notification is missing recipient_id.")

        notification = Notification(
            recipient_id=record.recipient_id,
            type=record.type,
            title=record.title,
            message=record.message,
            sender_id=record.sender_id,
            form_id=record.form_id,
            form_title=record.form_title,
            actor_id=record.actor_id,
            actor_name=record.actor_name,
            data=json.dumps(record.data),
            read=0,
            created_on=(record.created_on or date.today()).isoformat(),
        )
        try:
            with self._scope() as db:
                db.add(notification)
                db.flush()
                return notification.id
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not create notification: {e}") from e

    def has_due_reminder(self, form_id: str, recipient_id: str, day: date) -> bool:
        """Whether a due-date reminder for (form, recipient) was written on ``day``."""
        try:
            with self._scope() as db:
                return db.query(
                    db.query(Notification)
                    .filter(
                        Notification.type == DUE_DATE,
                        Notification.form_id == form_id,
                        Notification.recipient_id == recipient_id,
                        Notification.created_on == day.isoformat(),
                    )
                    .exists()
                ).scalar()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Reminder lookup failed: {e}") from e

    def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[NotificationResponse]:
        """Newest-first notifications for ``user_id``."""
        try:
            with self._scope() as db:
                query = db.query(Notification).filter(Notification.recipient_id == user_id)
                if unread_only:
                    query = query.filter(Notification.read == 0)
                rows = query.order_by(Notification.created_at.desc()).limit(limit).all()
                return [NotificationResponse.model_validate(n) for n in rows]
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Listing notifications failed: {e}") from e

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        try:
            with self._scope() as db:
                notification = db.query(Notification).filter(
                    Notification.id == notification_id,
                    Notification.recipient_id == user_id,
                ).first()
                if not notification:
                    raise NotFound(f"Notification {notification_id} not found")
                notification.read = 1
                notification.read_at = datetime.now(timezone.utc).isoformat()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not mark notification read: {e}") from e

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification for ``user_id`` read; returns rows updated."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._scope() as db:
                return db.query(Notification).filter(
                    Notification.recipient_id == user_id,
                    Notification.read == 0,
                ).update({"read": 1, "read_at": now}, synchronize_session=False)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not mark notifications read: {e}") from e

    # Forms

    def query_due_forms(self, target_date: date) -> list[FormResponse]:
        """Forms whose due date is exactly ``target_date``."""
        try:
            with self._scope() as db:
                forms = (
                    db.query(Form)
                    .options(selectinload(Form.targets))
                    .filter(Form.due_date == target_date.isoformat())
                    .order_by(Form.created_at)
                    .all()
                )
                return [FormResponse.model_validate(f) for f in forms]
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Due form query failed for {target_date}: {e}") from e

    def create_form(
        self,
        title: str,
        created_by: str,
        target_users: list[str],
        due_date: date | None = None,
        description: str | None = None,
        is_public: bool = False,
    ) -> FormResponse:
        # The association table is unique per (form, user); keep first occurrence.
        unique_targets = list(dict.fromkeys(target_users))
        form = Form(
            title=title,
            description=description,
            due_date=due_date.isoformat() if due_date else None,
            is_public=1 if is_public else 0,
            created_by=created_by,
            targets=[
                FormTarget(user_id=user_id, position=index)
                for index, user_id in enumerate(unique_targets)
            ],
        )
        try:
            with self._scope() as db:
                db.add(form)
                db.flush()
                return FormResponse.model_validate(form)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not create form: {e}") from e

    def list_forms_for_user(self, user_id: str) -> list[FormResponse]:
        """Public forms plus forms targeting or created by ``user_id``."""
        try:
            with self._scope() as db:
                targeted = select(FormTarget.form_id).where(FormTarget.user_id == user_id)
                forms = (
                    db.query(Form)
                    .options(selectinload(Form.targets))
                    .filter(
                        (Form.is_public == 1)
                        | (Form.created_by == user_id)
                        | Form.id.in_(targeted)
                    )
                    .order_by(Form.created_at.desc())
                    .all()
                )
                return [FormResponse.model_validate(f) for f in forms]
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Listing forms failed: {e}") from e

    # Users

    def get_display_name(self, user_id: str) -> str:
        """Display name, falling back to the local part of the email."""
        try:
            with self._scope() as db:
                user = db.query(User).filter(User.id == user_id).first()
                if not user:
                    raise NotFound(f"User {user_id} not found")
                if user.display_name:
                    return user.display_name
                if user.email:
                    return user.email.split("@")[0]
                raise NotFound(f"User {user_id} has no display name")
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"User lookup failed: {e}") from e

    def create_user(
        self,
        user_id: str,
        email: str,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> UserResponse:
        """Create a profile; an existing id or email raises ValidationError and writes nothing."""
        try:
            with self._scope() as db:
                if db.query(User).filter(User.id == user_id).first():
                    raise ValidationError("User already registered")
                if db.query(User).filter(User.email == email).first():
                    raise ValidationError("Email already registered")
                user = User(
                    id=user_id,
                    email=email,
                    display_name=display_name,
                    photo_url=photo_url,
                )
                db.add(user)
                db.flush()
                return UserResponse.model_validate(user)
        except IntegrityError as e:
            # lost a race with a concurrent registration
            raise ValidationError(f"User {user_id} or email already registered") from e
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not save user {user_id}: {e}") from e

    def search_users(self, prefix: str, limit: int = 10) -> list[UserResponse]:
        """Display-name prefix search as a range query [prefix, prefix + U+F8FF]."""
        if not prefix:
            return []
        try:
            with self._scope() as db:
                users = (
                    db.query(User)
                    .filter(
                        User.display_name >= prefix,
                        User.display_name <= prefix + "\uf8ff",
                    )
                    .order_by(User.display_name)
                    .limit(limit)
                    .all()
                )
                return [UserResponse.model_validate(u) for u in users]
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"User search failed: {e}") from e
