"""
SQLAlchemy 2.0 models for the note metadata database.

Only note metadata is relational; subjects, assignments, exams and profiles
live in the document store. Ownership is the auth provider's user id, so
`user_id` and `subject_id` are opaque strings rather than foreign keys.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Index, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from studydesk.db.base import Base


class Note(Base):
    """
    Uploaded reference file for a subject.

    Immutable once created. `subject_name` is a snapshot taken at upload
    time and is not updated if the subject changes later.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("idx_notes_user_subject_created_at", "user_id", "subject_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(128), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)  # Object storage key
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
