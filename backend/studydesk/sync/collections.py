"""
Collection sync engine: subjects, assignments and exams for the signed-in user.

Consistency strategies:
- optimistic-then-local: add_subject, update_assignment_status,
  delete_assignment, delete_exam write remotely and patch the local list.
  If the write fails, the last three refetch before re-raising.
- write-then-refetch: add_assignment, add_exam refetch after writing, since
  createdAt is assigned by the server.
- cascade delete: delete_subject removes the subject and every assignment
  and exam referencing it in one batch, then refetches.

Refetch results are applied only if the identity they were fetched for is
still current, and only if no newer refetch has already been applied.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import ValidationError

from studydesk.errors import RemoteFailure, Unauthenticated, ValidationFailure
from studydesk.schemas.assignments import Assignment, AssignmentCreate, AssignmentStatusType
from studydesk.schemas.auth import Identity
from studydesk.schemas.dashboard import CollectionsSnapshot, Stats
from studydesk.schemas.exams import Exam, ExamCreate
from studydesk.schemas.subjects import Subject, SubjectCreate
from studydesk.services.base import DocumentStore, owned_collection_path
from studydesk.sync.observable import Observable
from studydesk.validators import validate_assignment, validate_exam, validate_subject_name

logger = logging.getLogger(__name__)

SUBJECTS = "subjects"
ASSIGNMENTS = "assignments"
EXAMS = "exams"


class SyncState(str, Enum):
    """Lifecycle of the mirrored collections."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class CollectionSyncEngine(Observable):
    """In-memory mirror of the user's subjects, assignments and exams."""

    def __init__(self, store: DocumentStore):
        super().__init__()
        self.store = store
        self.subjects: tuple[Subject, ...] = ()
        self.assignments: tuple[Assignment, ...] = ()
        self.exams: tuple[Exam, ...] = ()
        self.state = SyncState.UNINITIALIZED
        self.error: str | None = None
        self._identity: Identity | None = None
        self._generation = 0
        self._refresh_seq = 0
        self._applied_seq = 0
        self._in_flight = 0
        self._refresh_task: asyncio.Task | None = None

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def init(self, identity: Identity | None) -> asyncio.Task | None:
        """
        Switch to `identity`.

        A null identity clears everything synchronously without a remote
        call. Otherwise a full refetch is scheduled and its task returned.
        """
        self._identity = identity
        self._generation += 1
        self._in_flight = 0
        self._cancel_refresh_task()

        if identity is None:
            self._clear()
            self.state = SyncState.UNINITIALIZED
            self.error = None
            self._notify()
            return None

        self._refresh_task = asyncio.create_task(self.refresh())
        return self._refresh_task

    async def dispose(self) -> None:
        task = self._refresh_task
        self.init(None)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def wait_until_settled(self) -> None:
        """Wait for the refetch scheduled by the last init(), if it is still running."""
        task = self._refresh_task
        if task is not None and not task.done():
            # asyncio.wait does not raise if init() cancels the task meanwhile
            await asyncio.wait({task})

    def _cancel_refresh_task(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None

    def _clear(self) -> None:
        self.subjects = ()
        self.assignments = ()
        self.exams = ()

    def _is_current(self, identity: Identity, generation: int) -> bool:
        return self._generation == generation and self._identity == identity

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def _fetch(self, identity: Identity, collection: str, record_type):
        # Needs the (ownerId, createdAt) composite index in firestore.indexes.json
        documents = await self.store.query(
            owned_collection_path(identity.id, collection),
            filters=[("ownerId", "==", identity.id)],
            order_by="createdAt",
        )
        return tuple(record_type.from_document(doc.id, doc.data) for doc in documents)

    async def refresh(self) -> bool:
        """
        Refetch all three collections for the current identity.

        On failure all three local collections are cleared and the error is
        recorded. Returns whether fresh data was applied.
        """
        identity = self._identity
        if identity is None:
            return False
        generation = self._generation
        self._refresh_seq += 1
        seq = self._refresh_seq

        self._in_flight += 1
        self.state = SyncState.LOADING
        self._notify()
        failure: str | None = None
        try:
            subjects = await self._fetch(identity, SUBJECTS, Subject)
            assignments = await self._fetch(identity, ASSIGNMENTS, Assignment)
            exams = await self._fetch(identity, EXAMS, Exam)
        except RemoteFailure as e:
            failure = e.message
        except ValidationError as e:
            failure = f"Malformed record in store: {e.error_count()} invalid field(s)"
        finally:
            # init() resets the counter for a new generation
            if self._generation == generation:
                self._in_flight -= 1

        if not self._is_current(identity, generation):
            logger.info("Discarding stale refetch for previous identity %s", identity.id)
            return False

        if seq > self._applied_seq:
            self._applied_seq = seq
            if failure is not None:
                logger.error("Error fetching collections for %s: %s", identity.id, failure)
                self._clear()
                self.error = failure
            else:
                self.subjects, self.assignments, self.exams = subjects, assignments, exams
                self.error = None
        # else: a newer refetch has already settled the data

        self._settle_state()
        self._notify()
        return failure is None and self._applied_seq == seq

    def _settle_state(self) -> None:
        if self.loading:
            self.state = SyncState.LOADING
        else:
            self.state = SyncState.ERROR if self.error else SyncState.READY

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _require_identity(self) -> Identity:
        if self._identity is None:
            raise Unauthenticated("User must be authenticated")
        return self._identity

    def _new_document(self, identity: Identity, fields: dict) -> dict:
        return {**fields, "ownerId": identity.id, "createdAt": self.store.server_timestamp()}

    async def add_subject(self, data: SubjectCreate) -> Subject:
        identity = self._require_identity()
        error = validate_subject_name(data.name, self.subjects)
        if error:
            raise ValidationFailure(error, errors={"name": error})

        fields = {"name": data.name.strip()}
        if data.code:
            fields["code"] = data.code
        try:
            subject_id = await self.store.add(
                owned_collection_path(identity.id, SUBJECTS), self._new_document(identity, fields)
            )
        except RemoteFailure:
            logger.exception("Error adding subject")
            raise

        subject = Subject(
            id=subject_id,
            name=fields["name"],
            code=data.code or None,
            created_at=datetime.now(timezone.utc),
            owner_id=identity.id,
        )
        if self._identity == identity:
            self.subjects = (*self.subjects, subject)
            self._notify()
        return subject

    async def delete_subject(self, subject_id: str) -> None:
        """Delete a subject together with its assignments and exams, atomically."""
        identity = self._require_identity()
        try:
            batch = self.store.batch()
            batch.delete(f"{owned_collection_path(identity.id, SUBJECTS)}/{subject_id}")
            for collection in (ASSIGNMENTS, EXAMS):
                dependents = await self.store.query(
                    owned_collection_path(identity.id, collection),
                    filters=[("ownerId", "==", identity.id), ("subjectId", "==", subject_id)],
                )
                for doc in dependents:
                    batch.delete(doc.path)
            await batch.commit()
        except RemoteFailure:
            logger.exception("Error deleting subject %s", subject_id)
            raise

        await self.refresh()

    async def add_assignment(self, data: AssignmentCreate) -> Assignment:
        identity = self._require_identity()
        errors = validate_assignment(data, self.subjects)
        if errors:
            raise ValidationFailure("Invalid assignment", errors=errors)

        fields = data.model_dump(by_alias=True, mode="json")
        try:
            assignment_id = await self.store.add(
                owned_collection_path(identity.id, ASSIGNMENTS), self._new_document(identity, fields)
            )
        except RemoteFailure:
            logger.exception("Error adding assignment")
            raise

        # Refetch to get the server timestamp and ordering
        await self.refresh()
        created = next((a for a in self.assignments if a.id == assignment_id), None)
        return created or Assignment(
            id=assignment_id,
            subject_id=data.subject_id,
            title=data.title,
            due_date=data.due_date,
            status=data.status,
            created_at=datetime.now(timezone.utc),
            owner_id=identity.id,
        )

    async def update_assignment_status(self, assignment_id: str, status: AssignmentStatusType) -> None:
        identity = self._require_identity()
        if status not in ("pending", "submitted"):
            raise ValidationFailure(f"Invalid status: {status}", errors={"status": "Invalid status"})

        try:
            await self.store.update(
                f"{owned_collection_path(identity.id, ASSIGNMENTS)}/{assignment_id}", {"status": status}
            )
            if self._identity == identity:
                self.assignments = tuple(
                    a.model_copy(update={"status": status}) if a.id == assignment_id else a
                    for a in self.assignments
                )
                self._notify()
        except RemoteFailure:
            logger.exception("Error updating assignment status")
            await self.refresh()
            raise

    async def delete_assignment(self, assignment_id: str) -> None:
        identity = self._require_identity()
        try:
            await self.store.delete(f"{owned_collection_path(identity.id, ASSIGNMENTS)}/{assignment_id}")
            if self._identity == identity:
                self.assignments = tuple(a for a in self.assignments if a.id != assignment_id)
                self._notify()
        except RemoteFailure:
            logger.exception("Error deleting assignment")
            await self.refresh()
            raise

    async def add_exam(self, data: ExamCreate) -> Exam:
        identity = self._require_identity()
        errors = validate_exam(data, self.subjects)
        if errors:
            raise ValidationFailure("Invalid exam", errors=errors)

        fields = data.model_dump(by_alias=True, mode="json")
        try:
            exam_id = await self.store.add(
                owned_collection_path(identity.id, EXAMS), self._new_document(identity, fields)
            )
        except RemoteFailure:
            logger.exception("Error adding exam")
            raise

        await self.refresh()
        created = next((e for e in self.exams if e.id == exam_id), None)
        return created or Exam(
            id=exam_id,
            subject_id=data.subject_id,
            name=data.name,
            exam_date=data.exam_date,
            created_at=datetime.now(timezone.utc),
            owner_id=identity.id,
        )

    async def delete_exam(self, exam_id: str) -> None:
        identity = self._require_identity()
        try:
            await self.store.delete(f"{owned_collection_path(identity.id, EXAMS)}/{exam_id}")
            if self._identity == identity:
                self.exams = tuple(e for e in self.exams if e.id != exam_id)
                self._notify()
        except RemoteFailure:
            logger.exception("Error deleting exam")
            await self.refresh()
            raise

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def get_subject_by_id(self, subject_id: str) -> Subject | None:
        return next((s for s in self.subjects if s.id == subject_id), None)

    def get_assignments_by_subject(self, subject_id: str) -> list[Assignment]:
        return [a for a in self.assignments if a.subject_id == subject_id]

    def get_exams_by_subject(self, subject_id: str) -> list[Exam]:
        return [e for e in self.exams if e.subject_id == subject_id]

    def stats(self, today: date | None = None) -> Stats:
        today = today or date.today()
        return Stats(
            total_subjects=len(self.subjects),
            total_assignments=len(self.assignments),
            pending_assignments=sum(1 for a in self.assignments if a.status == "pending"),
            submitted_assignments=sum(1 for a in self.assignments if a.status == "submitted"),
            total_exams=len(self.exams),
            upcoming_exams=sum(1 for e in self.exams if e.exam_date >= today),
        )

    def snapshot(self) -> CollectionsSnapshot:
        return CollectionsSnapshot(
            state=self.state.value,
            subjects=list(self.subjects),
            assignments=list(self.assignments),
            exams=list(self.exams),
            loading=self.loading,
            error=self.error,
        )
