"""Note schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field

from studydesk.schemas.base import BaseSchema


class NoteUpload(BaseSchema):
    """A file submitted for upload. Held only for the duration of the upload."""

    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class NoteCreate(BaseSchema):
    """Metadata row persisted after a successful upload."""

    user_id: str
    subject_id: str
    subject_name: str
    file_name: str
    file_path: str
    file_url: str
    file_type: str
    file_size: int


class NoteRead(NoteCreate):
    """Schema for reading note metadata."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    created_at: datetime


class NotesSnapshot(BaseSchema):
    """Notes held for the current subject."""

    notes: list[NoteRead]
    current_subject_id: str | None
    loading: bool
    error: str | None = None
