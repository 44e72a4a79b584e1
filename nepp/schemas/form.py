"""Form schemas."""
from datetime import date

from pydantic import BaseModel, Field, field_validator


class FormCreate(BaseModel):
    """Request to post a new form."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    target_users: list[str] = []
    is_public: bool = False


class FormResponse(BaseModel):
    """Form as stored, detached from the database session."""

    id: str
    title: str
    description: str | None = None
    due_date: date | None = None
    target_users: list[str] = []
    is_public: bool = False
    created_by: str
    created_at: str | None = None

    @field_validator("is_public", mode="before")
    @classmethod
    def parse_is_public(cls, v):
        return bool(v)

    class Config:
        from_attributes = True
