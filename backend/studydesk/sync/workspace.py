"""
Workspace: the four sync engines wired together for one user session.

The session store is the only source of identity changes. Each change is
forwarded to the profile mirror, the collection engine and the notes engine
within the same synchronous step, so logout leaves no stale data behind.
"""

import logging

from studydesk.config import Settings, get_settings
from studydesk.db.session import create_session_factory
from studydesk.schemas.auth import Identity
from studydesk.services.base import AuthProvider, DocumentStore, NoteMetadataStore, ObjectStorage, Unsubscribe
from studydesk.services.firebase_auth import FirebaseAuthProvider
from studydesk.services.firestore import FirestoreDocumentStore
from studydesk.services.note_store import SqlNoteStore
from studydesk.services.s3 import S3ObjectStorage
from studydesk.sync.collections import CollectionSyncEngine
from studydesk.sync.notes import NotesSyncEngine
from studydesk.sync.profile import ProfileMirror
from studydesk.sync.session import SessionStore

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(
        self,
        auth: AuthProvider,
        documents: DocumentStore,
        storage: ObjectStorage,
        note_store: NoteMetadataStore,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.auth = auth
        self.session = SessionStore(auth)
        self.profile = ProfileMirror(documents)
        self.collections = CollectionSyncEngine(documents)
        self.notes = NotesSyncEngine(storage, note_store, self.settings.max_note_size_bytes)
        self._unsubscribe: Unsubscribe | None = None

    @property
    def identity(self) -> Identity | None:
        return self.session.current_identity

    def start(self) -> None:
        """Wire identity changes to the engines and subscribe to the auth provider."""
        if self._unsubscribe is None:
            self._unsubscribe = self.session.on_identity_changed(self._identity_changed)
        self.session.init()

    def _identity_changed(self, identity: Identity | None) -> None:
        logger.info("Identity changed: %s", identity.id if identity else "signed out")
        self.profile.init(identity)
        self.collections.init(identity)
        self.notes.init(identity)

    async def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.session.dispose()
        self.profile.dispose()
        self.notes.dispose()
        await self.collections.dispose()


def build_workspace(settings: Settings | None = None) -> Workspace:
    """Construct a workspace over Firebase, Firestore, S3 and the note database."""
    settings = settings or get_settings()
    return Workspace(
        auth=FirebaseAuthProvider(settings),
        documents=FirestoreDocumentStore(settings),
        storage=S3ObjectStorage(settings),
        note_store=SqlNoteStore(create_session_factory(settings)),
        settings=settings,
    )
