"""
Form validation utilities.

Validators return an error message string if invalid, or None if valid.
Form-level validators return a dict of field name -> error message.
Inputs may be mappings or objects with matching attributes.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

from studydesk.avatars import get_avatar_by_id

ALLOWED_NOTE_TYPES = ("application/pdf", "image/jpeg", "image/jpg", "image/png")
MAX_NOTE_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
UPCOMING_WINDOW_DAYS = 7


def _get(source: Any, key: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _to_date(value: date | datetime | str) -> date | None:
    """Midnight-normalize a date-like value. Returns None if it can't be parsed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def validate_required(value: Any, field_name: str = "This field") -> str | None:
    """Validate a required text field."""
    if value is None or str(value).strip() == "":
        return f"{field_name} is required"
    return None


def validate_subject_name(
    name: str | None,
    existing_subjects: Iterable[Any] = (),
    current_id: str | None = None,
) -> str | None:
    """Subject name is required and must be unique (case-insensitive) among existing subjects."""
    required_error = validate_required(name, "Subject name")
    if required_error:
        return required_error

    wanted = name.strip().lower()
    for subject in existing_subjects:
        if str(_get(subject, "name")).strip().lower() == wanted and _get(subject, "id") != current_id:
            return "A subject with this name already exists"
    return None


def validate_date(value: date | datetime | str | None, field_name: str = "Date") -> str | None:
    """Validate that a date is present and parseable."""
    if value is None or value == "":
        return f"{field_name} is required"
    if _to_date(value) is None:
        return f"{field_name} is invalid"
    return None


def _validate_subject_ref(form: Any, subjects: Iterable[Any]) -> str | None:
    subject_id = _get(form, "subject_id")
    if not subject_id:
        return "Please select a subject"
    if not any(_get(s, "id") == subject_id for s in subjects):
        return "Selected subject does not exist"
    return None


def validate_assignment(form: Any, subjects: Iterable[Any] = ()) -> dict[str, str]:
    """Validate an assignment form against the owner's subjects."""
    errors = {}

    subject_error = _validate_subject_ref(form, subjects)
    if subject_error:
        errors["subject_id"] = subject_error

    title_error = validate_required(_get(form, "title"), "Assignment title")
    if title_error:
        errors["title"] = title_error

    date_error = validate_date(_get(form, "due_date"), "Due date")
    if date_error:
        errors["due_date"] = date_error

    return errors


def validate_exam(form: Any, subjects: Iterable[Any] = ()) -> dict[str, str]:
    """Validate an exam form against the owner's subjects."""
    errors = {}

    subject_error = _validate_subject_ref(form, subjects)
    if subject_error:
        errors["subject_id"] = subject_error

    name_error = validate_required(_get(form, "name"), "Exam name")
    if name_error:
        errors["name"] = name_error

    date_error = validate_date(_get(form, "exam_date"), "Exam date")
    if date_error:
        errors["exam_date"] = date_error

    return errors


def validate_profile(form: Any) -> dict[str, str]:
    """Validate a profile form. Every field is required."""
    errors = {}

    for field, label in (
        ("name", "Name"),
        ("branch", "Branch"),
        ("semester", "Semester"),
        ("enrollment_no", "Enrollment Number"),
        ("class_section", "Class/Section"),
    ):
        error = validate_required(_get(form, field), label)
        if error:
            errors[field] = error

    for field, label in (("college_name", "College Name"), ("university_name", "University Name")):
        value = _get(form, field)
        error = validate_required(value, label)
        if error:
            errors[field] = error
        elif len(value.strip()) < 3:
            errors[field] = f"{label} must be at least 3 characters"

    avatar_id = _get(form, "avatar_id")
    if not avatar_id:
        errors["avatar_id"] = "Please select an avatar"
    elif get_avatar_by_id(avatar_id) is None:
        errors["avatar_id"] = "Selected avatar does not exist"

    return errors


def validate_note_file(
    content_type: str | None,
    size: int,
    max_size: int = MAX_NOTE_SIZE_BYTES,
) -> str | None:
    """Only PDF, JPEG and PNG files up to `max_size` bytes are accepted."""
    if content_type not in ALLOWED_NOTE_TYPES:
        return "Invalid file type. Only PDF, JPG, and PNG files are allowed."
    if size > max_size:
        return f"File size exceeds {max_size // (1024 * 1024)}MB limit."
    return None


def has_errors(errors: Mapping[str, str]) -> bool:
    """Check whether a form errors dict contains any errors."""
    return len(errors) > 0


def is_past_date(value: date | datetime | str | None, today: date | None = None) -> bool:
    """True if the date is strictly before today."""
    if not value:
        return False
    day = _to_date(value)
    if day is None:
        return False
    return day < (today or date.today())


def is_upcoming(value: date | datetime | str | None, today: date | None = None) -> bool:
    """True if the date falls within today .. today + 7 days (inclusive)."""
    if not value:
        return False
    day = _to_date(value)
    if day is None:
        return False
    today = today or date.today()
    return today <= day <= today + timedelta(days=UPCOMING_WINDOW_DAYS)
