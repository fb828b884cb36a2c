"""Subject routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from studydesk.api.deps import WorkspaceDep, get_current_identity
from studydesk.schemas.assignments import Assignment
from studydesk.schemas.exams import Exam
from studydesk.schemas.subjects import Subject, SubjectCreate
from studydesk.sync.collections import CollectionSyncEngine

router = APIRouter(prefix="/subjects", tags=["subjects"], dependencies=[Depends(get_current_identity)])


async def synced_collections(workspace: WorkspaceDep) -> CollectionSyncEngine:
    """Collection engine, once the refetch started by the last identity change has settled."""
    await workspace.collections.wait_until_settled()
    return workspace.collections


def get_subject_or_404(collections: CollectionSyncEngine, subject_id: str) -> Subject:
    subject = collections.get_subject_by_id(subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


@router.get("", response_model=list[Subject])
async def list_subjects(collections: CollectionSyncEngine = Depends(synced_collections)) -> list[Subject]:
    """List subjects, oldest first."""
    return list(collections.subjects)


@router.post("", response_model=Subject, status_code=status.HTTP_201_CREATED)
async def create_subject(
    data: SubjectCreate,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> Subject:
    """Create a subject. Names are unique per user, ignoring case."""
    return await collections.add_subject(data)


@router.get("/{subject_id}", response_model=Subject)
async def get_subject(
    subject_id: str,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> Subject:
    """Get a specific subject by ID."""
    return get_subject_or_404(collections, subject_id)


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(
    subject_id: str,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> None:
    """
    Delete a subject with all of its assignments and exams.

    The deletes are committed as one batch. Notes attached to the subject
    are kept.
    """
    get_subject_or_404(collections, subject_id)
    await collections.delete_subject(subject_id)


@router.get("/{subject_id}/assignments", response_model=list[Assignment])
async def list_subject_assignments(
    subject_id: str,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> list[Assignment]:
    get_subject_or_404(collections, subject_id)
    return collections.get_assignments_by_subject(subject_id)


@router.get("/{subject_id}/exams", response_model=list[Exam])
async def list_subject_exams(
    subject_id: str,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> list[Exam]:
    get_subject_or_404(collections, subject_id)
    return collections.get_exams_by_subject(subject_id)
