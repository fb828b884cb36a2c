"""
Note routes.

Notes are file attachments of a subject:
- GET /subjects/{id}/notes - Load that subject's notes (newest first)
- POST /subjects/{id}/notes - Upload a PDF/JPEG/PNG (max 10MB)
- DELETE /notes/{id} - Delete a note and its stored file
- DELETE /notes - Forget the currently loaded notes
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status

from studydesk.api.deps import WorkspaceDep, get_current_identity
from studydesk.api.routes.subjects import get_subject_or_404, synced_collections
from studydesk.schemas.notes import NoteRead, NotesSnapshot, NoteUpload
from studydesk.sync.collections import CollectionSyncEngine

router = APIRouter(tags=["notes"], dependencies=[Depends(get_current_identity)])


@router.get("/subjects/{subject_id}/notes", response_model=list[NoteRead])
async def list_notes(
    subject_id: str,
    workspace: WorkspaceDep,
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> list[NoteRead]:
    """Load the subject's notes. Replaces any previously loaded subject's notes."""
    get_subject_or_404(collections, subject_id)
    return await workspace.notes.load_notes(subject_id)


@router.post("/subjects/{subject_id}/notes", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def upload_note(
    subject_id: str,
    workspace: WorkspaceDep,
    file: UploadFile = File(...),
    collections: CollectionSyncEngine = Depends(synced_collections),
) -> NoteRead:
    """
    Upload a note file.

    Flow:
    1. File type and size are validated before anything is stored
    2. The file is uploaded to object storage
    3. Metadata (with the subject's current name) is saved
    """
    subject = get_subject_or_404(collections, subject_id)
    data = await file.read()
    upload = NoteUpload(
        file_name=file.filename or "upload",
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )
    return await workspace.notes.add_note(upload, subject.id, subject.name)


@router.get("/notes", response_model=NotesSnapshot)
async def get_loaded_notes(workspace: WorkspaceDep) -> NotesSnapshot:
    """Currently loaded notes and the subject they belong to."""
    return workspace.notes.snapshot()


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: UUID, workspace: WorkspaceDep) -> None:
    """Delete a note. Its stored file is removed on a best-effort basis."""
    await workspace.notes.delete_note(note_id)


@router.delete("/notes", status_code=status.HTTP_204_NO_CONTENT)
async def clear_notes(workspace: WorkspaceDep) -> None:
    """Forget the loaded notes, e.g. when leaving a subject's notes page."""
    workspace.notes.clear_notes()
