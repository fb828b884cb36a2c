"""Declarative base for SQLAlchemy models, and the migration scope of the note database."""

from sqlalchemy.orm import DeclarativeBase

# The note database may be shared with other services, so StudyDesk keeps
# its own alembic version table and only manages its own tables.
VERSION_TABLE = "studydesk_alembic_version"


class Base(DeclarativeBase):
    pass


def include_object(obj, name, type_, reflected, compare_to) -> bool:
    """Alembic autogenerate filter: skip tables (and their children) not declared on Base."""
    if type_ == "table":
        return name in Base.metadata.tables
    table = getattr(obj, "table", None)
    return table is None or table.name in Base.metadata.tables
