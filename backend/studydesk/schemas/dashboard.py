"""Collection snapshot and statistics schemas."""

from studydesk.schemas.assignments import Assignment
from studydesk.schemas.base import BaseSchema
from studydesk.schemas.exams import Exam
from studydesk.schemas.subjects import Subject


class Stats(BaseSchema):
    """Aggregate counts over the mirrored collections."""

    total_subjects: int
    total_assignments: int
    pending_assignments: int
    submitted_assignments: int
    total_exams: int
    upcoming_exams: int


class CollectionsSnapshot(BaseSchema):
    """Current state of the subjects/assignments/exams mirror."""

    state: str
    subjects: list[Subject]
    assignments: list[Assignment]
    exams: list[Exam]
    loading: bool
    error: str | None = None
