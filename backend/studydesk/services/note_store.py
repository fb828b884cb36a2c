"""Note metadata persistence in the relational database."""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studydesk.db.models import Note
from studydesk.errors import NotConfigured, RemoteFailure
from studydesk.schemas.notes import NoteCreate, NoteRead

logger = logging.getLogger(__name__)


class SqlNoteStore:
    """
    Note metadata store over SQLAlchemy.

    Every query is scoped by user_id at the SQL level. Without a session
    factory the store is not configured: reads return nothing and writes
    raise NotConfigured.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None):
        self.session_factory = session_factory
        if session_factory is None:
            logger.warning("Note metadata database not configured; notes are disabled")

    @property
    def configured(self) -> bool:
        return self.session_factory is not None

    async def insert(self, note: NoteCreate) -> NoteRead:
        if self.session_factory is None:
            raise NotConfigured("Notes are disabled: the note database is not configured.")

        try:
            async with self.session_factory() as session:
                row = Note(**note.model_dump())
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return NoteRead.model_validate(row)
        except SQLAlchemyError as e:
            raise RemoteFailure(f"Failed to save note: {e}") from e

    async def select(self, user_id: str, subject_id: str) -> list[NoteRead]:
        if self.session_factory is None:
            return []

        query = (
            select(Note)
            .where(Note.user_id == user_id, Note.subject_id == subject_id)
            .order_by(Note.created_at.desc())
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [NoteRead.model_validate(n) for n in result.scalars()]
        except SQLAlchemyError as e:
            raise RemoteFailure(f"Failed to fetch notes: {e}") from e

    async def delete(self, note_id: UUID, user_id: str) -> None:
        if self.session_factory is None:
            raise NotConfigured("Notes are disabled: the note database is not configured.")

        try:
            async with self.session_factory() as session:
                await session.execute(
                    delete(Note).where(Note.id == note_id, Note.user_id == user_id)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise RemoteFailure(f"Failed to delete note record: {e}") from e
