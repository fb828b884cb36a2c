"""Subject schemas."""

from datetime import datetime

from pydantic import Field

from studydesk.schemas.base import BaseSchema, RecordSchema


class SubjectCreate(BaseSchema):
    """Schema for creating a subject."""

    name: str = Field("", max_length=255)
    code: str | None = Field(None, max_length=50)


class Subject(RecordSchema):
    """Subject record."""

    id: str
    name: str
    code: str | None = None
    created_at: datetime
    owner_id: str
