"""Profile schemas."""

from studydesk.schemas.base import BaseSchema, RecordSchema

PROFILE_FIELDS = (
    "name",
    "branch",
    "semester",
    "enrollment_no",
    "class_section",
    "college_name",
    "university_name",
    "avatar_id",
)


class ProfileData(RecordSchema):
    """Student profile stored under the `profile` field of the user document."""

    name: str = ""
    branch: str = ""
    semester: str = ""
    enrollment_no: str = ""
    class_section: str = ""
    college_name: str = ""
    university_name: str = ""
    avatar_id: str = ""

    def is_complete(self) -> bool:
        """True iff every profile field is non-empty."""
        return all(getattr(self, field) for field in PROFILE_FIELDS)

    def to_document(self) -> dict[str, str]:
        # Every field is always written, empty or not
        return self.model_dump(by_alias=True)


class ProfileSnapshot(BaseSchema):
    """Current mirrored profile state."""

    profile: ProfileData | None
    profile_exists: bool
    is_profile_complete: bool
    is_loading: bool
    error: str | None = None


class AvatarRead(BaseSchema):
    """Selectable avatar."""

    id: str
    label: str
    group: str
