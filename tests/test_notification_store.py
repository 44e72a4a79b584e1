from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nepp.errors import NotFound, StoreUnavailable, ValidationError
from nepp.schemas.notification import NotificationCreate
from nepp.services.notification_store import NotificationStore


def _notice(recipient_id, **overrides):
    fields = {
        "recipient_id": recipient_id,
        "type": "new-form",
        "title": "New Form Available",
        "message": 'Alice posted a new form "Permission slip"',
        "form_id": "f1",
    }
    fields.update(overrides)
    return NotificationCreate(**fields)


def _broken_store():
    # No tables: every query fails inside SQLAlchemy
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return NotificationStore(sessionmaker(bind=engine))


def test_unread_count_counts_only_unread_rows_for_user(store):
    assert store.get_unread_count("u1") == 0

    ids = [store.create_notification(_notice("u1")) for _ in range(4)]
    store.create_notification(_notice("u2"))
    store.mark_as_read("u1", ids[0])

    assert store.get_unread_count("u1") == 3
    assert store.get_unread_count("u2") == 1
    assert store.get_unread_count("") == 0


def test_create_notification_requires_recipient(store):
    with pytest.raises(ValidationError):
        store.create_notification(_notice(None))


def test_backend_errors_surface_as_store_unavailable():
    store = _broken_store()

    with pytest.raises(StoreUnavailable):
        store.get_unread_count("u1")
    with pytest.raises(StoreUnavailable):
        store.create_notification(_notice("u1"))
    with pytest.raises(StoreUnavailable):
        store.query_due_forms(date(2026, 10, 19))


def test_query_due_forms_matches_exact_date(store):
    due = date(2026, 10, 19)
    store.create_form("Permission slip", "u1", ["u1", "u2"], due_date=due)
    store.create_form("Field trip", "u1", ["u3"], due_date=date(2026, 10, 20))
    store.create_form("Survey", "u1", ["u3"])

    forms = store.query_due_forms(due)

    assert [f.title for f in forms] == ["Permission slip"]
    assert forms[0].target_users == ["u1", "u2"]
    assert forms[0].due_date == due


def test_has_due_reminder_keys_on_form_recipient_and_day(store):
    today = date(2026, 10, 18)
    store.create_notification(_notice("u1", type="due-date", created_on=today))

    assert store.has_due_reminder("f1", "u1", today)
    assert not store.has_due_reminder("f1", "u1", date(2026, 10, 19))
    assert not store.has_due_reminder("f1", "u2", today)
    assert not store.has_due_reminder("f2", "u1", today)


def test_new_form_notice_does_not_count_as_due_reminder(store):
    today = date(2026, 10, 18)
    store.create_notification(_notice("u1", created_on=today))

    assert not store.has_due_reminder("f1", "u1", today)


def test_mark_as_read_rejects_other_users_notification(store):
    notification_id = store.create_notification(_notice("u1"))

    with pytest.raises(NotFound):
        store.mark_as_read("u2", notification_id)
    with pytest.raises(NotFound):
        store.mark_as_read("u1", "missing")


def test_mark_all_as_read(store):
    for _ in range(3):
        store.create_notification(_notice("u1"))

    assert store.mark_all_as_read("u1") == 3
    assert store.get_unread_count("u1") == 0
    assert store.mark_all_as_read("u1") == 0


def test_list_notifications_filters_unread(store):
    first = store.create_notification(_notice("u1", data={"action": "view_form"}))
    store.create_notification(_notice("u1"))
    store.mark_as_read("u1", first)

    everything = store.list_notifications("u1")
    unread = store.list_notifications("u1", unread_only=True)

    assert len(everything) == 2
    assert len(unread) == 1
    assert first not in [n.id for n in unread]
    read_notice = next(n for n in everything if n.id == first)
    assert read_notice.read is True
    assert read_notice.data == {"action": "view_form"}


def test_display_name_falls_back_to_email(store):
    store.create_user("u1", "alice@example.com", display_name="Alice")
    store.create_user("u2", "bob@example.com")

    assert store.get_display_name("u1") == "Alice"
    assert store.get_display_name("u2") == "bob"
    with pytest.raises(NotFound):
        store.get_display_name("ghost")


def test_create_user_rejects_existing_id_without_writing(store):
    store.create_user("u1", "alice@example.com", display_name="Alice")

    with pytest.raises(ValidationError, match="already registered"):
        store.create_user("u1", "mallory@example.com", display_name="Mallory")

    assert store.get_display_name("u1") == "Alice"
    assert store.search_users("Mallory") == []


def test_create_user_rejects_taken_email(store):
    store.create_user("u1", "alice@example.com", display_name="Alice")

    with pytest.raises(ValidationError, match="Email already registered"):
        store.create_user("u2", "alice@example.com", display_name="Imposter")

    with pytest.raises(NotFound):
        store.get_display_name("u2")


def test_search_users_by_display_name_prefix(store):
    store.create_user("u1", "alice@example.com", display_name="Alice")
    store.create_user("u2", "alan@example.com", display_name="Alan")
    store.create_user("u3", "bob@example.com", display_name="Bob")

    assert [u.display_name for u in store.search_users("Al")] == ["Alan", "Alice"]
    assert store.search_users("al") == []
    assert store.search_users("") == []


def test_list_forms_for_user_includes_public_targeted_and_own(store):
    store.create_form("Public", "u9", [], is_public=True)
    store.create_form("Targeted", "u9", ["u1"])
    store.create_form("Own", "u1", [])
    store.create_form("Hidden", "u9", ["u2"])

    titles = {f.title for f in store.list_forms_for_user("u1")}

    assert titles == {"Public", "Targeted", "Own"}
