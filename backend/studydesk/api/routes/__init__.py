"""API routes package."""

from studydesk.api.routes import (
    assignments,
    auth,
    dashboard,
    exams,
    notes,
    profile,
    subjects,
)

__all__ = [
    "assignments",
    "auth",
    "dashboard",
    "exams",
    "notes",
    "profile",
    "subjects",
]
