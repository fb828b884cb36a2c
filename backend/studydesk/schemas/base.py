"""Base schema configuration."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    Fields are snake_case in Python and camelCase on the wire and in stored
    documents; either spelling is accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        str_strip_whitespace=True,
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RecordSchema(BaseSchema):
    """Immutable record mirrored from a remote store."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]):
        """
        Build a record from a stored document.

        A missing createdAt (legacy documents) falls back to the current time.
        """
        created_at = data.get("createdAt") or datetime.now(timezone.utc)
        return cls.model_validate({**data, "id": doc_id, "createdAt": created_at})

    def to_document(self) -> dict[str, Any]:
        """Serialize to stored document fields (camelCase, JSON-compatible)."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"}, exclude_none=True)
