"""User search endpoints."""
from fastapi import APIRouter, Depends, Query

from nepp.api.deps import get_current_session, get_store
from nepp.schemas.auth import UserResponse
from nepp.schemas.session import Session
from nepp.services.notification_store import NotificationStore

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserResponse])
def search_users(
    prefix: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(10, ge=1, le=50),
    store: NotificationStore = Depends(get_store),
    session: Session = Depends(get_current_session),
):
    """Users whose display name starts with ``prefix``."""
    return store.search_users(prefix, limit=limit)
