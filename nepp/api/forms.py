"""Form endpoints."""
from fastapi import APIRouter, Depends, status

from nepp.api.deps import get_current_session, get_dispatcher, get_store
from nepp.schemas.form import FormCreate, FormResponse
from nepp.schemas.session import Session
from nepp.services.notification_dispatch import NotificationDispatcher
from nepp.services.notification_store import NotificationStore

router = APIRouter(prefix="/forms", tags=["forms"])


@router.post("", response_model=FormResponse, status_code=status.HTTP_201_CREATED)
def create_form(
    form_data: FormCreate,
    store: NotificationStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    session: Session = Depends(get_current_session),
):
    """Post a form and notify its targets."""
    form = store.create_form(
        title=form_data.title,
        created_by=session.id,
        target_users=form_data.target_users,
        due_date=form_data.due_date,
        description=form_data.description,
        is_public=form_data.is_public,
    )
    # dispatch_new_form never raises, so notification trouble cannot fail this request
    dispatcher.dispatch_new_form(form)
    return form


@router.get("", response_model=list[FormResponse])
def list_forms(
    store: NotificationStore = Depends(get_store),
    session: Session = Depends(get_current_session),
):
    """Forms visible to the signed-in user."""
    return store.list_forms_for_user(session.id)
