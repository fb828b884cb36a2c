"""Authentication schemas."""

from pydantic import EmailStr, Field

from studydesk.schemas.base import BaseSchema, RecordSchema


class Identity(RecordSchema):
    """Authenticated user principal issued by the auth provider."""

    id: str = Field(..., min_length=1)
    email: str | None = None


class CredentialsRequest(BaseSchema):
    """Request schema for email/password sign-up and sign-in."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=4096)


class SessionSnapshot(BaseSchema):
    """Current session state."""

    identity: Identity | None
    is_loading: bool
    error: str | None = None
