"""Pydantic schemas for records, snapshots and API request/response validation."""

from studydesk.schemas.auth import CredentialsRequest, Identity, SessionSnapshot
from studydesk.schemas.profile import AvatarRead, ProfileData, ProfileSnapshot
from studydesk.schemas.subjects import Subject, SubjectCreate
from studydesk.schemas.assignments import Assignment, AssignmentCreate, AssignmentStatusUpdate
from studydesk.schemas.exams import Exam, ExamCreate
from studydesk.schemas.notes import NoteCreate, NoteRead, NoteUpload, NotesSnapshot
from studydesk.schemas.dashboard import CollectionsSnapshot, Stats

__all__ = [
    # Auth
    "CredentialsRequest",
    "Identity",
    "SessionSnapshot",
    # Profile
    "AvatarRead",
    "ProfileData",
    "ProfileSnapshot",
    # Subjects
    "Subject",
    "SubjectCreate",
    # Assignments
    "Assignment",
    "AssignmentCreate",
    "AssignmentStatusUpdate",
    # Exams
    "Exam",
    "ExamCreate",
    # Notes
    "NoteCreate",
    "NoteRead",
    "NoteUpload",
    "NotesSnapshot",
    # Dashboard
    "CollectionsSnapshot",
    "Stats",
]
