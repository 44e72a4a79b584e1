"""SQLAlchemy models package."""
from nepp.models.user import User
from nepp.models.form import Form, FormTarget
from nepp.models.notification import Notification

__all__ = [
    "User",
    "Form",
    "FormTarget",
    "Notification",
]
