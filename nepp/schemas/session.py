"""Identity-provider session schemas."""
from pydantic import BaseModel


class SessionMetadata(BaseModel):
    """Account timestamps reported by the identity provider."""

    creation_time: str | None = None
    last_sign_in_time: str | None = None

    class Config:
        frozen = True


class Session(BaseModel):
    """Signed-in user as reported by the identity provider."""

    id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    metadata: SessionMetadata = SessionMetadata()

    class Config:
        frozen = True
