"""Shared API dependencies."""
from fastapi import Depends, HTTPException, Request, status

from nepp.container import ServiceContainer
from nepp.schemas.session import Session
from nepp.services.notification_dispatch import NotificationDispatcher
from nepp.services.notification_store import NotificationStore


def get_container(request: Request) -> ServiceContainer:
    """The container built in the application lifespan."""
    return request.app.state.container


def get_store(container: ServiceContainer = Depends(get_container)) -> NotificationStore:
    return container.store


def get_dispatcher(container: ServiceContainer = Depends(get_container)) -> NotificationDispatcher:
    return container.dispatcher


def get_current_session(container: ServiceContainer = Depends(get_container)) -> Session:
    """Active identity-provider session, or 401."""
    session = container.broadcaster.current_session
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )
    return session
