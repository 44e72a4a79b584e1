"""Notification error taxonomy.

``StoreUnavailable`` is transient: callers retry on the next scheduled tick,
never inline. ``ValidationError`` is surfaced to the caller and not retried.
``NotFound`` means a referenced user, form or notification is missing; callers
skip and log, the API answers 404.
"""


class NotificationError(Exception):
    """Base class for notification failures."""


class StoreUnavailable(NotificationError):
    """The backing store rejected or failed a call."""


class ValidationError(NotificationError):
    """A record handed to the store or dispatcher is malformed."""


class NotFound(NotificationError):
    """A referenced record does not exist."""
