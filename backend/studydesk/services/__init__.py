"""Services for external integrations."""

from studydesk.services.firebase_auth import FirebaseAuthProvider
from studydesk.services.firestore import FirestoreDocumentStore
from studydesk.services.note_store import SqlNoteStore
from studydesk.services.s3 import S3ObjectStorage

__all__ = ["FirebaseAuthProvider", "FirestoreDocumentStore", "SqlNoteStore", "S3ObjectStorage"]
