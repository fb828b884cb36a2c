"""Exam routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from studydesk.api.deps import get_current_identity
from studydesk.api.routes.subjects import synced_collections
from studydesk.schemas.exams import Exam, ExamCreate
from studydesk.sync.collections import CollectionSyncEngine
from studydesk.validators import is_upcoming

router = APIRouter(prefix="/exams", tags=["exams"], dependencies=[Depends(get_current_identity)])


@router.get("", response_model=list[Exam])
async def list_exams(
    subject_id: str | None = None,
    upcoming: bool | None = None,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> list[Exam]:
    """
    List exams for the current user, oldest first.

    Filters:
    - subject_id: Filter by subject
    - upcoming: Only exams within the next 7 days
    """
    exams = list(collections.exams)
    if subject_id:
        exams = [e for e in exams if e.subject_id == subject_id]
    if upcoming:
        exams = [e for e in exams if is_upcoming(e.exam_date)]
    return exams


@router.post("", response_model=Exam, status_code=status.HTTP_201_CREATED)
async def create_exam(
    data: ExamCreate,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> Exam:
    """Create an exam for one of the user's subjects."""
    return await collections.add_exam(data)


@router.delete("/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exam(
    exam_id: str,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> None:
    """Delete an exam."""
    if not any(e.id == exam_id for e in collections.exams):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")
    await collections.delete_exam(exam_id)
