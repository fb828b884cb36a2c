"""Exam schemas."""

from datetime import date, datetime

from pydantic import Field

from studydesk.schemas.base import BaseSchema, RecordSchema


class ExamCreate(BaseSchema):
    """Schema for creating an exam. Required fields are checked by the validators."""

    subject_id: str = ""
    name: str = Field("", max_length=255)
    exam_date: date | None = None


class Exam(RecordSchema):
    """Exam record."""

    id: str
    subject_id: str
    name: str
    exam_date: date
    created_at: datetime
    owner_id: str
