"""Form models."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from nepp.database import Base


class Form(Base):
    """A form posted to a set of target users."""

    __tablename__ = "forms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    due_date = Column(String(10), index=True)  # YYYY-MM-DD
    is_public = Column(Integer, default=0)  # SQLite boolean
    created_by = Column(String(128), nullable=False, index=True)
    created_at = Column(String(32), default=lambda: datetime.now(timezone.utc).isoformat())

    targets = relationship(
        "FormTarget",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormTarget.position",
    )

    @property
    def target_users(self) -> list[str]:
        return [target.user_id for target in self.targets]


class FormTarget(Base):
    """Membership of a user in a form's target set."""

    __tablename__ = "form_targets"
    __table_args__ = (
        UniqueConstraint("form_id", "user_id", name="uq_form_target"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    position = Column(Integer, default=0)

    form = relationship("Form", back_populates="targets")
