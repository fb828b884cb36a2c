"""Client-side sync engines for the signed-in user's data."""

from studydesk.sync.collections import CollectionSyncEngine, SyncState
from studydesk.sync.notes import NotesSyncEngine
from studydesk.sync.profile import ProfileMirror
from studydesk.sync.session import SessionStore
from studydesk.sync.workspace import Workspace, build_workspace

__all__ = [
    "CollectionSyncEngine",
    "NotesSyncEngine",
    "ProfileMirror",
    "SessionStore",
    "SyncState",
    "Workspace",
    "build_workspace",
]
