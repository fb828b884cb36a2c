"""Dashboard routes: aggregate counts and manual resync."""

from fastapi import APIRouter, Depends

from studydesk.api.deps import get_current_identity
from studydesk.api.routes.subjects import synced_collections
from studydesk.schemas.dashboard import CollectionsSnapshot, Stats
from studydesk.sync.collections import CollectionSyncEngine

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(get_current_identity)])


@router.get("/stats", response_model=Stats)
async def get_stats(collections: CollectionSyncEngine = Depends(synced_collections)) -> Stats:
    """Subject, assignment and exam counts. Upcoming exams are those dated today or later."""
    return collections.stats()


@router.post("/refresh", response_model=CollectionsSnapshot)
async def refresh(collections: CollectionSyncEngine = Depends(synced_collections)) -> CollectionsSnapshot:
    """Refetch subjects, assignments and exams from the document store."""
    await collections.refresh()
    return collections.snapshot()
