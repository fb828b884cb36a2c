"""Assignment schemas."""

from datetime import date, datetime
from typing import Literal

from pydantic import Field

from studydesk.schemas.base import BaseSchema, RecordSchema

AssignmentStatusType = Literal["pending", "submitted"]


class AssignmentCreate(BaseSchema):
    """Schema for creating an assignment. Required fields are checked by the validators."""

    subject_id: str = ""
    title: str = Field("", max_length=255)
    due_date: date | None = None
    status: AssignmentStatusType = "pending"


class Assignment(RecordSchema):
    """Assignment record."""

    id: str
    subject_id: str
    title: str
    due_date: date
    status: AssignmentStatusType = "pending"
    created_at: datetime
    owner_id: str


class AssignmentStatusUpdate(BaseSchema):
    """Schema for changing an assignment's status."""

    status: AssignmentStatusType
