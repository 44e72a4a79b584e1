"""Session and registration endpoints.

Sign-in itself happens at the identity provider; these endpoints only relay
its session changes into the process and create the portal profile.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from nepp.api.deps import get_container, get_current_session, get_dispatcher, get_store
from nepp.container import ServiceContainer
from nepp.errors import ValidationError
from nepp.schemas.auth import MessageResponse, UserRegister, UserResponse
from nepp.schemas.session import Session
from nepp.services.auth_state import LocalIdentityProvider
from nepp.services.notification_dispatch import NotificationDispatcher
from nepp.services.notification_store import NotificationStore

router = APIRouter(prefix="/auth", tags=["auth"])


def _local_provider(container: ServiceContainer) -> LocalIdentityProvider:
    provider = container.identity_provider
    if not isinstance(provider, LocalIdentityProvider):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sessions are managed by the configured identity provider",
        )
    return provider


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    store: NotificationStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Create the profile for a new identity and send the welcome notice."""
    try:
        user = store.create_user(
            user_data.id,
            user_data.email,
            display_name=user_data.display_name,
            photo_url=user_data.photo_url,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    # Registration succeeds even if the welcome notice does not.
    dispatcher.dispatch_welcome(user.id, user.email)
    return user


@router.post("/session", response_model=Session)
def sign_in(
    session: Session,
    container: ServiceContainer = Depends(get_container),
):
    """Relay a provider sign-in to subscribers."""
    _local_provider(container).sign_in(session)
    return session


@router.get("/session", response_model=Session)
def current_session(session: Session = Depends(get_current_session)):
    return session


@router.delete("/session", response_model=MessageResponse)
def sign_out(container: ServiceContainer = Depends(get_container)):
    """Relay a provider sign-out to subscribers."""
    _local_provider(container).sign_out()
    return MessageResponse(message="Successfully signed out")
