"""Tests for the collection sync engine."""

import asyncio
import json
from datetime import date
from pathlib import Path

import pytest

from fakes import SERVER_TIMESTAMP, InMemoryDocumentStore
from studydesk.errors import RemoteFailure, Unauthenticated, ValidationFailure
from studydesk.schemas.assignments import AssignmentCreate
from studydesk.schemas.exams import ExamCreate
from studydesk.schemas.subjects import SubjectCreate
from studydesk.sync.collections import ASSIGNMENTS, EXAMS, SUBJECTS, CollectionSyncEngine, SyncState

INDEXES_FILE = Path(__file__).resolve().parents[2] / "firestore.indexes.json"


def seed(documents: InMemoryDocumentStore, uid: str, collection: str, doc_id: str, **fields) -> str:
    data = {**fields, "ownerId": uid, "createdAt": SERVER_TIMESTAMP}
    return documents.seed(f"users/{uid}/{collection}", data, doc_id=doc_id)


def remote_ids(documents: InMemoryDocumentStore, uid: str, collection: str) -> set[str]:
    prefix = f"users/{uid}/{collection}/"
    return {path[len(prefix):] for path in documents.docs if path.startswith(prefix)}


@pytest.fixture
def engine(documents: InMemoryDocumentStore) -> CollectionSyncEngine:
    return CollectionSyncEngine(documents)


@pytest.fixture
def ann_data(documents, ann):
    """Two subjects, each with one assignment and one exam."""
    seed(documents, ann.id, "subjects", "math", name="Math")
    seed(documents, ann.id, "subjects", "physics", name="Physics", code="PHY101")
    seed(documents, ann.id, "assignments", "a1", subjectId="math", title="Sheet 1", dueDate="2026-03-12", status="pending")
    seed(documents, ann.id, "assignments", "a2", subjectId="physics", title="Lab", dueDate="2026-03-01", status="submitted")
    seed(documents, ann.id, "exams", "e1", subjectId="math", name="Midterm", examDate="2026-03-10")
    seed(documents, ann.id, "exams", "e2", subjectId="physics", name="Final", examDate="2026-02-01")


class TestLifecycle:
    async def test_init_fetches_in_creation_order(self, engine, ann, ann_data):
        await engine.init(ann)
        assert engine.state == SyncState.READY
        assert [s.id for s in engine.subjects] == ["math", "physics"]
        assert engine.subjects[1].code == "PHY101"
        assert [a.id for a in engine.assignments] == ["a1", "a2"]
        assert engine.assignments[0].due_date == date(2026, 3, 12)
        assert not engine.loading

    async def test_only_owned_records_are_mirrored(self, engine, documents, ann, bob, ann_data):
        # A record under ann's path tagged with another owner is not shown
        seed(documents, ann.id, "subjects", "foreign", name="Foreign")
        documents.docs[f"users/{ann.id}/subjects/foreign"]["ownerId"] = bob.id
        await engine.init(ann)
        assert "foreign" not in [s.id for s in engine.subjects]

    async def test_null_identity_clears_synchronously(self, engine, ann, ann_data):
        await engine.init(ann)
        assert engine.init(None) is None
        assert engine.subjects == () and engine.assignments == () and engine.exams == ()
        assert engine.state == SyncState.UNINITIALIZED

    async def test_refetch_failure_clears_everything(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        documents.failures.fail_next("query")
        assert await engine.refresh() is False
        assert engine.subjects == () and engine.assignments == () and engine.exams == ()
        assert engine.state == SyncState.ERROR
        assert engine.error == "query failed: permission denied"

    async def test_stale_refetch_is_discarded(self, engine, documents, ann, bob, ann_data):
        seed(documents, bob.id, "subjects", "bio", name="Biology")
        await engine.init(ann)

        documents.query_gate = asyncio.Event()
        stale = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)
        fresh = engine.init(bob)
        documents.query_gate.set()

        assert await stale is False
        assert await fresh is True
        assert [s.name for s in engine.subjects] == ["Biology"]
        assert engine.assignments == ()

    async def test_snapshot_notifies_listeners(self, engine, ann, ann_data):
        states = []
        engine.subscribe(lambda: states.append(engine.state))
        await engine.init(ann)
        assert states == [SyncState.LOADING, SyncState.READY]


class TestSubjects:
    async def test_add_and_delete_round_trip(self, engine, documents, ann):
        await engine.init(ann)
        math = await engine.add_subject(SubjectCreate(name="Math"))
        await engine.add_subject(SubjectCreate(name="Physics"))
        await engine.delete_subject(math.id)

        assert {s.id for s in engine.subjects} == remote_ids(documents, ann.id, "subjects")
        assert [s.name for s in engine.subjects] == ["Physics"]

    async def test_failed_add_leaves_subjects_without_refetch(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        queries = documents.failures.calls.count("query")
        documents.failures.fail_next("add")
        with pytest.raises(RemoteFailure):
            await engine.add_subject(SubjectCreate(name="Chemistry"))
        assert [s.name for s in engine.subjects] == ["Math", "Physics"]
        assert documents.failures.calls.count("query") == queries
        assert remote_ids(documents, ann.id, "subjects") == {"math", "physics"}

    async def test_duplicate_name_never_reaches_store(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        with pytest.raises(ValidationFailure) as exc_info:
            await engine.add_subject(SubjectCreate(name="  MATH "))
        assert exc_info.value.errors == {"name": "A subject with this name already exists"}
        assert "add" not in documents.failures.calls

    async def test_cascade_delete(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        await engine.delete_subject("math")

        assert remote_ids(documents, ann.id, "subjects") == {"physics"}
        assert remote_ids(documents, ann.id, "assignments") == {"a2"}
        assert remote_ids(documents, ann.id, "exams") == {"e2"}
        assert [a.id for a in engine.assignments] == ["a2"]
        assert [e.id for e in engine.exams] == ["e2"]

    async def test_failed_cascade_deletes_nothing(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        documents.failures.fail_next("commit")
        with pytest.raises(RemoteFailure):
            await engine.delete_subject("math")
        assert remote_ids(documents, ann.id, "subjects") == {"math", "physics"}
        assert remote_ids(documents, ann.id, "assignments") == {"a1", "a2"}
        assert len(engine.subjects) == 2


class TestAssignmentsAndExams:
    async def test_add_assignment_refetches_server_timestamp(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        created = await engine.add_assignment(
            AssignmentCreate(subject_id="math", title="Sheet 2", due_date=date(2026, 3, 20))
        )
        stored = documents.docs[f"users/{ann.id}/assignments/{created.id}"]
        assert created.created_at == stored["createdAt"]
        assert stored["dueDate"] == "2026-03-20"
        assert engine.assignments[-1] == created

    async def test_add_assignment_validates_subject(self, engine, ann, ann_data):
        await engine.init(ann)
        with pytest.raises(ValidationFailure) as exc_info:
            await engine.add_assignment(AssignmentCreate(subject_id="history", title="Essay", due_date=date(2026, 3, 20)))
        assert exc_info.value.errors == {"subject_id": "Selected subject does not exist"}

    async def test_status_update_is_applied_locally(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        await engine.update_assignment_status("a1", "submitted")
        assert engine.assignments[0].status == "submitted"
        assert documents.docs[f"users/{ann.id}/assignments/a1"]["status"] == "submitted"

    async def test_failed_status_update_resynchronizes(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        # Changed elsewhere since the last fetch
        seed(documents, ann.id, "assignments", "a3", subjectId="math", title="Sheet 3", dueDate="2026-03-30", status="pending")
        documents.failures.fail_next("update")
        with pytest.raises(RemoteFailure):
            await engine.update_assignment_status("a1", "submitted")
        assert [a.id for a in engine.assignments] == ["a1", "a2", "a3"]
        assert engine.assignments[0].status == "pending"

    async def test_delete_assignment_and_exam(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        await engine.delete_assignment("a2")
        await engine.delete_exam("e1")
        assert [a.id for a in engine.assignments] == ["a1"]
        assert [e.id for e in engine.exams] == ["e2"]
        assert remote_ids(documents, ann.id, "exams") == {"e2"}

    async def test_failed_assignment_delete_resynchronizes(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        seed(documents, ann.id, "assignments", "a3", subjectId="math", title="Sheet 3", dueDate="2026-03-30", status="pending")
        documents.failures.fail_next("delete")
        with pytest.raises(RemoteFailure):
            await engine.delete_assignment("a1")
        assert [a.id for a in engine.assignments] == ["a1", "a2", "a3"]
        assert documents.failures.calls[-3:] == ["query", "query", "query"]

    async def test_failed_exam_delete_resynchronizes(self, engine, documents, ann, ann_data):
        await engine.init(ann)
        seed(documents, ann.id, "exams", "e3", subjectId="physics", name="Quiz", examDate="2026-04-02")
        documents.failures.fail_next("delete")
        with pytest.raises(RemoteFailure):
            await engine.delete_exam("e1")
        assert [e.id for e in engine.exams] == ["e1", "e2", "e3"]
        assert remote_ids(documents, ann.id, "exams") == {"e1", "e2", "e3"}

    async def test_add_exam(self, engine, ann, ann_data):
        await engine.init(ann)
        exam = await engine.add_exam(ExamCreate(subject_id="physics", name="Quiz", exam_date=date(2026, 4, 2)))
        assert engine.get_exams_by_subject("physics")[-1] == exam

    async def test_mutations_require_identity(self, engine):
        with pytest.raises(Unauthenticated):
            await engine.add_subject(SubjectCreate(name="Math"))
        with pytest.raises(Unauthenticated):
            await engine.delete_exam("e1")


class TestDerivedViews:
    async def test_lookups(self, engine, ann, ann_data):
        await engine.init(ann)
        assert engine.get_subject_by_id("physics").name == "Physics"
        assert engine.get_subject_by_id("nope") is None
        assert [a.id for a in engine.get_assignments_by_subject("math")] == ["a1"]

    async def test_stats(self, engine, ann, ann_data):
        await engine.init(ann)
        stats = engine.stats(today=date(2026, 3, 10))
        assert stats.total_subjects == 2
        assert stats.total_assignments == 2
        assert stats.pending_assignments == 1
        assert stats.submitted_assignments == 1
        assert stats.total_exams == 2
        # e1 is today, e2 is past
        assert stats.upcoming_exams == 1


class RecordingStore(InMemoryDocumentStore):
    def __init__(self):
        super().__init__()
        self.queries: list[tuple[str, tuple, str | None]] = []

    async def query(self, collection_path, filters=(), order_by=None, descending=False):
        self.queries.append((collection_path, tuple(filters), order_by))
        return await super().query(collection_path, filters, order_by, descending)


class TestFirestoreIndexes:
    async def test_refetch_queries_have_composite_indexes(self, ann):
        store = RecordingStore()
        engine = CollectionSyncEngine(store)
        await engine.init(ann)

        indexes = {
            index["collectionGroup"]: [field["fieldPath"] for field in index["fields"]]
            for index in json.loads(INDEXES_FILE.read_text())["indexes"]
        }
        assert {path.rsplit("/", 1)[-1] for path, _, _ in store.queries} == {SUBJECTS, ASSIGNMENTS, EXAMS}
        for path, filters, order_by in store.queries:
            expected = [field for field, _, _ in filters] + [order_by]
            assert indexes[path.rsplit("/", 1)[-1]] == expected
