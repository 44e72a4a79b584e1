"""Notification API endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from nepp.api.deps import get_container, get_current_session, get_store
from nepp.container import ServiceContainer
from nepp.errors import NotFound
from nepp.schemas.notification import (
    BadgeResponse,
    CheckResponse,
    MarkAllReadResponse,
    NotificationResponse,
    SchedulerStatusResponse,
    UnreadCountResponse,
)
from nepp.schemas.session import Session
from nepp.services.badge import badge_label
from nepp.services.notification_store import NotificationStore

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
def get_notifications(
    unread_only: bool = False,
    store: NotificationStore = Depends(get_store),
    session: Session = Depends(get_current_session),
):
    """Get the signed-in user's notifications."""
    return store.list_notifications(session.id, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    store: NotificationStore = Depends(get_store),
    session: Session = Depends(get_current_session),
):
    count = store.get_unread_count(session.id)
    return UnreadCountResponse(count=count, label=badge_label(count))


@router.get("/badge", response_model=BadgeResponse)
def get_badge(container: ServiceContainer = Depends(get_container)):
    """Badge as last rendered by the poller."""
    badge = container.badge
    return BadgeResponse(
        visible=getattr(badge, "visible", False),
        label=getattr(badge, "label", None),
    )


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    container: ServiceContainer = Depends(get_container),
    session: Session = Depends(get_current_session),
):
    updated = container.store.mark_all_as_read(session.id)
    container.badge_poller.refresh()
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    container: ServiceContainer = Depends(get_container),
    session: Session = Depends(get_current_session),
):
    """Mark a notification as read."""
    try:
        container.store.mark_as_read(session.id, notification_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Notification not found")
    container.badge_poller.refresh()
    return {"success": True}


@router.post("/check", response_model=CheckResponse)
def run_check_now(
    container: ServiceContainer = Depends(get_container),
    session: Session = Depends(get_current_session),
):
    """Run the due-date check now instead of waiting for the next tick."""
    return CheckResponse(created=container.scheduler.manual_check())


@router.get("/scheduler", response_model=SchedulerStatusResponse)
def get_scheduler_status(container: ServiceContainer = Depends(get_container)):
    state = container.scheduler.state
    return SchedulerStatusResponse(
        is_running=state.is_running,
        last_check_at=state.last_check_at.isoformat() if state.last_check_at else None,
        last_result=state.last_result,
        last_error=state.last_error,
    )
