"""User profile model."""
from datetime import datetime, timezone

from sqlalchemy import Column, String

from nepp.database import Base


class User(Base):
    """Profile mirrored from the identity provider.

    The id is the provider's uid, so no default is generated here.
    """

    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), index=True)
    photo_url = Column(String(512))
    created_at = Column(String(32), default=lambda: datetime.now(timezone.utc).isoformat())
    updated_at = Column(
        String(32),
        default=lambda: datetime.now(timezone.utc).isoformat(),
        onupdate=lambda: datetime.now(timezone.utc).isoformat(),
    )
