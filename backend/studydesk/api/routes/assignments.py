"""Assignment routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from studydesk.api.deps import get_current_identity
from studydesk.api.routes.subjects import synced_collections
from studydesk.schemas.assignments import Assignment, AssignmentCreate, AssignmentStatusUpdate
from studydesk.sync.collections import CollectionSyncEngine

router = APIRouter(prefix="/assignments", tags=["assignments"], dependencies=[Depends(get_current_identity)])


def _get_assignment_or_404(collections: CollectionSyncEngine, assignment_id: str) -> Assignment:
    assignment = next((a for a in collections.assignments if a.id == assignment_id), None)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return assignment


@router.get("", response_model=list[Assignment])
async def list_assignments(
    subject_id: str | None = None,
    status: str | None = None,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> list[Assignment]:
    """
    List assignments for the current user, oldest first.

    Filters:
    - subject_id: Filter by subject
    - status: Filter by status (pending, submitted)
    """
    assignments = list(collections.assignments)
    if subject_id:
        assignments = [a for a in assignments if a.subject_id == subject_id]
    if status:
        assignments = [a for a in assignments if a.status == status]
    return assignments


@router.post("", response_model=Assignment, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentCreate,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> Assignment:
    """Create an assignment for one of the user's subjects."""
    return await collections.add_assignment(data)


@router.patch("/{assignment_id}/status", response_model=Assignment)
async def update_assignment_status(
    assignment_id: str,
    data: AssignmentStatusUpdate,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> Assignment:
    """Mark an assignment pending or submitted."""
    _get_assignment_or_404(collections, assignment_id)
    await collections.update_assignment_status(assignment_id, data.status)
    return _get_assignment_or_404(collections, assignment_id)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> None:
    """Delete an assignment."""
    _get_assignment_or_404(collections, assignment_id)
    await collections.delete_assignment(assignment_id)
