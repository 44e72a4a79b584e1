"""Notification model for portal events."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Index, Integer, String, Text

from nepp.database import Base

NEW_FORM = "new-form"
DUE_DATE = "due-date"
WELCOME = "welcome"


class Notification(Base):
    """Notification addressed to a single recipient."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_unread", "recipient_id", "read"),
        Index("ix_notifications_created", "recipient_id", "created_at"),
        Index("ix_notifications_due_reminder", "type", "form_id", "recipient_id", "created_on"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    recipient_id = Column(String(128), nullable=False)

    # new-form, due-date, welcome
    type = Column(String(50), nullable=False)

    # Content
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    sender_id = Column(String(128))  # "system" or null for generated notices

    # Payload
    form_id = Column(String(36))
    form_title = Column(String(255))
    actor_id = Column(String(128))
    actor_name = Column(String(100))
    data = Column(Text, default="{}")  # JSON for anything else

    # Status
    read = Column(Integer, default=0)  # SQLite boolean
    read_at = Column(String(32))

    # Timestamps
    created_at = Column(String(32), default=lambda: datetime.now(timezone.utc).isoformat())
    created_on = Column(String(10), nullable=False)  # YYYY-MM-DD, due-date dedupe key
