"""Registration schemas."""
from pydantic import BaseModel, EmailStr, Field


class UserRegister(BaseModel):
    """Profile registration request for a freshly created identity."""

    id: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    display_name: str | None = Field(None, max_length=100)
    photo_url: str | None = None


class UserResponse(BaseModel):
    """User info response."""

    id: str
    email: str
    display_name: str | None = None
    photo_url: str | None = None
    created_at: str

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
