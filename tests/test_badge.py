import threading

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from nepp.errors import StoreUnavailable
from nepp.schemas.notification import NotificationCreate
from nepp.schemas.session import Session
from nepp.services.auth_state import AuthStateBroadcaster, LocalIdentityProvider
from nepp.services.badge import BADGE_JOB_ID, BadgePoller, BadgeState, badge_label

ALICE = Session(id="u1", email="alice@example.com")


class FailingStore:
    def get_unread_count(self, user_id):
        raise StoreUnavailable("backend down")


class GatedStore:
    """Fixed counts; calls for ``held_user`` block until ``release`` is set."""

    def __init__(self, counts):
        self.counts = counts
        self.held_user = None
        self.entered = threading.Event()
        self.release = threading.Event()

    def get_unread_count(self, user_id):
        if user_id == self.held_user:
            self.entered.set()
            self.release.wait(5)
        return self.counts.get(user_id, 0)


def _build(store):
    provider = LocalIdentityProvider()
    broadcaster = AuthStateBroadcaster(provider)
    timer = BackgroundScheduler(timezone="UTC")
    view = BadgeState()
    poller = BadgePoller(broadcaster, store, view, timer, interval_seconds=30)
    provider.restore(None)
    return provider, poller, view, timer


def _notify(store, user_id, count):
    for _ in range(count):
        store.create_notification(
            NotificationCreate(recipient_id=user_id, type="welcome", title="Hi", message="Hello")
        )


@pytest.mark.parametrize(
    "count, label",
    [(0, None), (None, None), (1, "1"), (42, "42"), (99, "99"), (100, "99+"), (1500, "99+")],
)
def test_badge_label(count, label):
    assert badge_label(count) == label


def test_sign_in_shows_unread_count_and_arms_timer(store):
    _notify(store, "u1", 3)
    provider, poller, view, timer = _build(store)

    provider.sign_in(ALICE)

    assert poller.is_polling
    assert view.visible is True
    assert view.label == "3"
    assert [job.id for job in timer.get_jobs()] == [BADGE_JOB_ID]


def test_badge_hidden_when_nothing_unread(store):
    provider, _, view, _ = _build(store)

    provider.sign_in(ALICE)

    assert view.visible is False
    assert view.label is None


def test_refresh_picks_up_new_notifications(store):
    provider, poller, view, _ = _build(store)
    provider.sign_in(ALICE)

    _notify(store, "u1", 120)

    assert poller.refresh() == "99+"
    assert view.label == "99+"


def test_sign_out_cancels_timer_and_hides_badge(store):
    _notify(store, "u1", 2)
    provider, poller, view, timer = _build(store)
    provider.sign_in(ALICE)

    provider.sign_out()

    assert not poller.is_polling
    assert view.visible is False
    assert timer.get_jobs() == []
    assert poller.refresh() is None


def test_repeated_sign_in_keeps_one_timer(store):
    provider, _, _, timer = _build(store)

    provider.sign_in(ALICE)
    provider.sign_in(Session(id="u2"))

    assert [job.id for job in timer.get_jobs()] == [BADGE_JOB_ID]


def test_store_failure_hides_badge():
    provider, poller, view, _ = _build(FailingStore())

    provider.sign_in(ALICE)

    assert poller.is_polling
    assert view.visible is False


def test_close_stops_listening(store):
    provider, poller, view, timer = _build(store)
    poller.close()

    provider.sign_in(ALICE)

    assert not poller.is_polling
    assert timer.get_jobs() == []


def _tick_in_background(poller, results):
    thread = threading.Thread(target=lambda: results.append(poller.refresh()))
    thread.start()
    return thread


def test_tick_finishing_after_sign_out_leaves_badge_hidden():
    store = GatedStore({"u1": 4})
    provider, poller, view, _ = _build(store)
    provider.sign_in(ALICE)
    assert view.label == "4"

    store.held_user = "u1"
    results = []
    thread = _tick_in_background(poller, results)
    assert store.entered.wait(5)

    provider.sign_out()
    store.release.set()
    thread.join(5)

    assert results == [None]
    assert view.visible is False


def test_tick_for_previous_user_does_not_overwrite_new_user_count():
    store = GatedStore({"u1": 4, "u2": 2})
    provider, poller, view, _ = _build(store)
    provider.sign_in(ALICE)

    store.held_user = "u1"
    results = []
    thread = _tick_in_background(poller, results)
    assert store.entered.wait(5)

    provider.sign_in(Session(id="u2"))
    store.release.set()
    thread.join(5)

    assert results == [None]
    assert view.visible is True
    assert view.label == "2"


def test_sign_out_after_job_already_removed(store):
    provider, poller, view, timer = _build(store)
    provider.sign_in(ALICE)
    timer.remove_job(BADGE_JOB_ID)

    provider.sign_out()
    provider.sign_in(ALICE)

    assert poller.is_polling
    assert [job.id for job in timer.get_jobs()] == [BADGE_JOB_ID]
