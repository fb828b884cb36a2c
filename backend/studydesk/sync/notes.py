"""
Notes sync engine: file attachments for one subject at a time.

Files go to object storage; their metadata goes to the relational note
store. The engine mirrors the metadata of the current subject only, and
loading another subject discards the previous list.
"""

import logging
import time
from uuid import UUID

from studydesk.errors import NotConfigured, RemoteFailure, Unauthenticated, ValidationFailure
from studydesk.schemas.auth import Identity
from studydesk.schemas.notes import NoteCreate, NoteRead, NotesSnapshot, NoteUpload
from studydesk.services.base import NoteMetadataStore, ObjectStorage
from studydesk.sync.observable import Observable
from studydesk.validators import MAX_NOTE_SIZE_BYTES, validate_note_file

logger = logging.getLogger(__name__)


def note_path(user_id: str, subject_id: str, file_name: str) -> str:
    """Storage key for an upload: notes/{uid}/{subject}/{epoch ms}_{file name}."""
    timestamp = int(time.time() * 1000)
    return f"notes/{user_id}/{subject_id}/{timestamp}_{file_name}"


class NotesSyncEngine(Observable):
    """In-memory mirror of the current subject's note metadata."""

    def __init__(
        self,
        storage: ObjectStorage,
        metadata: NoteMetadataStore,
        max_file_size: int = MAX_NOTE_SIZE_BYTES,
    ):
        super().__init__()
        self.storage = storage
        self.metadata = metadata
        self.max_file_size = max_file_size
        self.notes: tuple[NoteRead, ...] = ()
        self.current_subject_id: str | None = None
        self.loading = False
        self.error: str | None = None
        self._identity: Identity | None = None
        self._generation = 0
        self._load_seq = 0

    @property
    def configured(self) -> bool:
        return self.storage.configured and self.metadata.configured

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def init(self, identity: Identity | None) -> None:
        if identity != self._identity:
            self._identity = identity
            self._generation += 1
            self.clear_notes()

    def dispose(self) -> None:
        self.init(None)

    def clear_notes(self) -> None:
        """Reset the list, the error and the current subject."""
        self._load_seq += 1
        self.notes = ()
        self.current_subject_id = None
        self.loading = False
        self.error = None
        self._notify()

    def _require_identity(self) -> Identity:
        if self._identity is None:
            self.error = "User must be authenticated"
            self._notify()
            raise Unauthenticated(self.error)
        return self._identity

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def load_notes(self, subject_id: str) -> list[NoteRead]:
        """Replace the local list with the subject's notes, newest first."""
        identity = self._require_identity()
        if not subject_id:
            raise ValidationFailure("Subject is required", errors={"subject_id": "Subject is required"})

        self._load_seq += 1
        seq = self._load_seq
        generation = self._generation
        if subject_id != self.current_subject_id:
            self.notes = ()
        self.current_subject_id = subject_id
        self.loading = True
        self.error = None
        self._notify()

        try:
            notes = await self.metadata.select(identity.id, subject_id)
        except RemoteFailure as e:
            if seq == self._load_seq and generation == self._generation:
                logger.error("Error loading notes for subject %s: %s", subject_id, e)
                self.notes = ()
                self.error = e.message
                self.loading = False
                self._notify()
            raise

        if seq != self._load_seq or generation != self._generation:
            logger.info("Discarding stale notes for subject %s", subject_id)
            return notes

        self.notes = tuple(notes)
        self.loading = False
        self._notify()
        return notes

    async def add_note(self, upload: NoteUpload, subject_id: str, subject_name: str) -> NoteRead:
        """
        Validate, upload, and record a note, then prepend it to the list.

        A failure at any step leaves the list unchanged. If the metadata
        insert fails, the uploaded object is removed again.
        """
        identity = self._require_identity()
        if not subject_id:
            raise ValidationFailure("Subject is required", errors={"subject_id": "Subject is required"})

        error = validate_note_file(upload.content_type, upload.size, self.max_file_size)
        if error:
            self.error = error
            self._notify()
            raise ValidationFailure(error, errors={"file": error})

        if not self.configured:
            self.error = "Notes are disabled: storage is not configured."
            self._notify()
            raise NotConfigured(self.error)

        generation = self._generation
        self.loading = True
        self.error = None
        self._notify()
        try:
            path = await self.storage.upload(
                note_path(identity.id, subject_id, upload.file_name), upload.data, upload.content_type
            )
            record = NoteCreate(
                user_id=identity.id,
                subject_id=subject_id,
                subject_name=subject_name,
                file_name=upload.file_name,
                file_path=path,
                file_url=self.storage.get_public_url(path),
                file_type=upload.content_type,
                file_size=upload.size,
            )
            try:
                note = await self.metadata.insert(record)
            except RemoteFailure:
                await self._remove_orphan(path)
                raise
        except RemoteFailure as e:
            logger.error("Error uploading note %s: %s", upload.file_name, e)
            if generation == self._generation:
                self.error = e.message
            raise
        else:
            if generation == self._generation:
                if self.current_subject_id is None:
                    self.current_subject_id = subject_id
                if self.current_subject_id == subject_id:
                    self.notes = (note, *self.notes)
            logger.info("Uploaded note %s for subject %s", note.id, subject_id)
            return note
        finally:
            # Skipped when a newer identity already reset the engine
            if generation == self._generation:
                self.loading = False
                self._notify()

    async def _remove_orphan(self, path: str) -> None:
        try:
            await self.storage.remove([path])
        except (RemoteFailure, NotConfigured) as e:
            logger.warning("Failed to remove orphaned upload %s: %s", path, e)

    async def delete_note(self, note_id: UUID, file_path: str | None = None) -> None:
        """
        Delete a note's metadata, then its stored file.

        The file path defaults to the one on the locally held record. Once
        the metadata is gone, a storage failure is only logged, including
        storage that is not configured.
        """
        identity = self._require_identity()
        if file_path is None:
            held = next((n for n in self.notes if n.id == note_id), None)
            file_path = held.file_path if held else None

        try:
            await self.metadata.delete(note_id, identity.id)
        except (RemoteFailure, NotConfigured) as e:
            logger.error("Error deleting note %s: %s", note_id, e)
            if self._identity == identity:
                self.error = e.message
                self._notify()
            raise

        if file_path:
            try:
                await self.storage.remove([file_path])
            except (RemoteFailure, NotConfigured) as e:
                logger.warning("Storage delete failed for %s: %s", file_path, e)

        if self._identity == identity:
            self.notes = tuple(n for n in self.notes if n.id != note_id)
            self._notify()

    def snapshot(self) -> NotesSnapshot:
        return NotesSnapshot(
            notes=list(self.notes),
            current_subject_id=self.current_subject_id,
            loading=self.loading,
            error=self.error,
        )
