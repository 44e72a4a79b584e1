"""Notification schemas."""
import json
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, field_validator

NotificationType = Literal["new-form", "due-date", "welcome"]


class NotificationCreate(BaseModel):
    """Record handed to the store.

    ``recipient_id`` is optional here so the store can reject it with its own
    ValidationError instead of failing at construction.
    """

    recipient_id: str | None = None
    type: NotificationType
    title: str
    message: str
    sender_id: str | None = None
    form_id: str | None = None
    form_title: str | None = None
    actor_id: str | None = None
    actor_name: str | None = None
    data: dict[str, Any] = {}
    created_on: date | None = None


class NotificationResponse(BaseModel):
    id: str
    recipient_id: str
    type: str
    title: str
    message: str
    sender_id: str | None = None
    form_id: str | None = None
    form_title: str | None = None
    actor_id: str | None = None
    actor_name: str | None = None
    data: dict[str, Any] = {}
    read: bool
    created_at: str

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v: Any) -> dict:
        if v is None:
            return {}
        if isinstance(v, str):
            return json.loads(v or "{}")
        return v

    @field_validator("read", mode="before")
    @classmethod
    def parse_read(cls, v: Any) -> bool:
        return bool(v)

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    count: int
    label: str | None = None


class BadgeResponse(BaseModel):
    visible: bool
    label: str | None = None


class MarkAllReadResponse(BaseModel):
    updated: int


class CheckResponse(BaseModel):
    created: int


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    last_check_at: str | None = None
    last_result: int | None = None
    last_error: str | None = None
