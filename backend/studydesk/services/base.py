"""
Contracts for the external collaborators consumed by the sync engines.

Concrete adapters live next to this module (Firebase auth, Firestore, S3,
SQL note metadata); tests substitute in-memory fakes.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID

from studydesk.schemas.auth import Identity
from studydesk.schemas.notes import NoteCreate, NoteRead

Unsubscribe = Callable[[], None]
IdentityListener = Callable[[Identity | None], None]

# (field, operator, value), e.g. ("subjectId", "==", "abc")
Filter = tuple[str, str, Any]


@dataclass(frozen=True)
class Document:
    """A document snapshot read from the document store."""

    path: str
    exists: bool
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]


class AuthProvider(Protocol):
    async def sign_up(self, email: str, password: str) -> Identity: ...

    async def sign_in(self, email: str, password: str) -> Identity: ...

    async def sign_out(self) -> None: ...

    def on_identity_change(self, listener: IdentityListener) -> Unsubscribe:
        """Register a listener; it is called with the current identity once it is known."""
        ...


class WriteBatch(Protocol):
    def delete(self, path: str) -> None: ...

    async def commit(self) -> None:
        """Apply all queued writes atomically."""
        ...


class DocumentStore(Protocol):
    def server_timestamp(self) -> Any:
        """Sentinel replaced by the server's commit time."""
        ...

    async def get(self, path: str) -> Document: ...

    async def set(self, path: str, data: dict[str, Any]) -> None: ...

    async def update(self, path: str, data: dict[str, Any]) -> None: ...

    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""
        ...

    async def delete(self, path: str) -> None: ...

    async def query(
        self,
        collection_path: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]: ...

    def on_snapshot(
        self,
        path: str,
        callback: Callable[[Document], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Unsubscribe:
        """Watch a single document. Callbacks are delivered on the event loop."""
        ...

    def batch(self) -> WriteBatch: ...


class ObjectStorage(Protocol):
    @property
    def configured(self) -> bool: ...

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at `path` and return the stored path."""
        ...

    def get_public_url(self, path: str) -> str: ...

    async def remove(self, paths: Sequence[str]) -> None: ...


class NoteMetadataStore(Protocol):
    @property
    def configured(self) -> bool: ...

    async def insert(self, note: NoteCreate) -> NoteRead: ...

    async def select(self, user_id: str, subject_id: str) -> list[NoteRead]:
        """Notes owned by `user_id` for `subject_id`, newest first."""
        ...

    async def delete(self, note_id: UUID, user_id: str) -> None: ...


def user_path(user_id: str) -> str:
    return f"users/{user_id}"


def owned_collection_path(user_id: str, collection: str) -> str:
    return f"users/{user_id}/{collection}"
