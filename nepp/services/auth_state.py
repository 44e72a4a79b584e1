"""Session mirroring for the external identity provider.

The identity provider owns sign-in. This module only republishes its
session-change events to in-process subscribers (badge poller, API).
"""
import itertools
import threading
from collections.abc import Callable
from typing import Protocol

import structlog

from nepp.schemas.session import Session

logger = structlog.get_logger(__name__)

AuthCallback = Callable[[Session | None], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    """Anything that reports session changes to a single callback."""

    def on_auth_state_changed(self, callback: AuthCallback) -> Unsubscribe:
        ...


class LocalIdentityProvider:
    """In-process identity provider fed by the session endpoints.

    ``restore`` reports the session found at startup (or ``None``) and is what
    completes initialization for subscribers registered early.
    """

    def __init__(self):
        self._callbacks: list[AuthCallback] = []
        self._lock = threading.Lock()

    def on_auth_state_changed(self, callback: AuthCallback) -> Unsubscribe:
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def restore(self, session: Session | None = None) -> None:
        self._emit(session)

    def sign_in(self, session: Session) -> None:
        self._emit(session)

    def sign_out(self) -> None:
        self._emit(None)

    def _emit(self, session: Session | None) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback(session)


class AuthStateBroadcaster:
    """Mirror of the provider's session plus an observer registry.

    Subscribers registered after the first provider event are called right
    away with the current snapshot. Subscribers registered before it wait for
    that first event.

    Deliveries are serialized: a subscriber never sees an older session after
    a newer one, even when it registers while a transition is being delivered.
    """

    def __init__(self, provider: IdentityProvider):
        self._lock = threading.Lock()
        # held across a whole delivery; reentrant so callbacks may subscribe
        self._delivery_lock = threading.RLock()
        self._listeners: dict[int, AuthCallback] = {}
        self._handles = itertools.count(1)
        self._current: Session | None = None
        self._initialized = False
        self._detach = provider.on_auth_state_changed(self._handle_change)

    @property
    def current_session(self) -> Session | None:
        return self._current

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def subscribe(self, callback: AuthCallback) -> Unsubscribe:
        """Register ``callback`` and return an idempotent unsubscribe function."""
        with self._delivery_lock:
            with self._lock:
                handle = next(self._handles)
                self._listeners[handle] = callback
                initialized = self._initialized
                snapshot = self._current

            if initialized:
                self._invoke(handle, callback, snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(handle, None)

        return unsubscribe

    def close(self) -> None:
        """Detach from the provider and drop every listener."""
        self._detach()
        with self._lock:
            self._listeners.clear()

    def _handle_change(self, session: Session | None) -> None:
        with self._delivery_lock:
            with self._lock:
                self._current = session
                self._initialized = True
                listeners = list(self._listeners.items())

            logger.info(
                "auth_state_changed",
                user_id=session.id if session else None,
                listeners=len(listeners),
            )
            for handle, callback in listeners:
                self._invoke(handle, callback, session)

    def _invoke(self, handle: int, callback: AuthCallback, session: Session | None) -> None:
        try:
            callback(session)
        except Exception as e:
            logger.error("auth_listener_failed", handle=handle, error=str(e))
