"""In-memory stand-ins for the auth provider, document store, object storage and note store."""

import asyncio
import itertools
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

from studydesk.errors import AuthError, NotConfigured, RemoteFailure
from studydesk.schemas.auth import Identity
from studydesk.schemas.notes import NoteCreate, NoteRead
from studydesk.services.base import Document, Filter, IdentityListener, Unsubscribe

SERVER_TIMESTAMP = object()
PASSWORD = "secret123"


class Failures:
    """One-shot failure injection keyed by operation name."""

    def __init__(self):
        self._pending: dict[str, Exception] = {}
        self.calls: list[str] = []

    def fail_next(self, operation: str, error: Exception | None = None) -> None:
        self._pending[operation] = error or RemoteFailure(f"{operation} failed: permission denied")

    def check(self, operation: str) -> None:
        self.calls.append(operation)
        error = self._pending.pop(operation, None)
        if error is not None:
            raise error


class FakeAuthProvider:
    def __init__(self):
        self.users: dict[str, tuple[str, Identity]] = {}
        self.failures = Failures()
        self._listeners: list[IdentityListener] = []
        self._current: Identity | None = None
        self._resolved = False
        self._ids = itertools.count(1)

    def register(self, email: str, password: str = PASSWORD) -> Identity:
        identity = Identity(id=f"uid-{next(self._ids)}", email=email)
        self.users[email] = (password, identity)
        return identity

    def on_identity_change(self, listener: IdentityListener) -> Unsubscribe:
        self._listeners.append(listener)
        if self._resolved:
            listener(self._current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, identity: Identity | None) -> None:
        self._current = identity
        self._resolved = True
        for listener in list(self._listeners):
            listener(identity)

    async def sign_up(self, email: str, password: str) -> Identity:
        await asyncio.sleep(0)
        self.failures.check("sign_up")
        if email in self.users:
            raise AuthError("EMAIL_EXISTS", kind="email-already-in-use")
        if len(password) < 6:
            raise AuthError("WEAK_PASSWORD : Password should be at least 6 characters", kind="weak-password")
        identity = self.register(email, password)
        self.emit(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        await asyncio.sleep(0)
        self.failures.check("sign_in")
        stored = self.users.get(email)
        if stored is None or stored[0] != password:
            raise AuthError("INVALID_LOGIN_CREDENTIALS", kind="invalid-credential")
        self.emit(stored[1])
        return stored[1]

    async def sign_out(self) -> None:
        await asyncio.sleep(0)
        self.failures.check("sign_out")
        self.emit(None)


class InMemoryBatch:
    def __init__(self, store: "InMemoryDocumentStore"):
        self.store = store
        self.paths: list[str] = []

    def delete(self, path: str) -> None:
        self.paths.append(path)

    async def commit(self) -> None:
        await asyncio.sleep(0)
        self.store.failures.check("commit")
        for path in self.paths:
            self.store.docs.pop(path, None)
            self.store._publish(path)


class InMemoryDocumentStore:
    """
    Dict-backed document store.

    Server timestamps become increasing datetimes at write time. Watches
    deliver the current document immediately and after every write to it.
    `query_gate`, when set, holds every query until the event is set.
    """

    def __init__(self):
        self.docs: dict[str, dict[str, Any]] = {}
        self.failures = Failures()
        self.query_gate: asyncio.Event | None = None
        self._watchers: dict[str, list[tuple[Callable, Callable | None]]] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._ids = itertools.count(1)

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP

    def _stamp(self, data: dict[str, Any]) -> dict[str, Any]:
        # One commit time per write
        self._clock += timedelta(seconds=1)
        return {key: self._clock if value is SERVER_TIMESTAMP else value for key, value in data.items()}

    def _document(self, path: str) -> Document:
        data = self.docs.get(path)
        if data is None:
            return Document(path=path, exists=False)
        return Document(path=path, exists=True, data=dict(data))

    def _publish(self, path: str) -> None:
        for callback, _ in list(self._watchers.get(path, [])):
            callback(self._document(path))

    def seed(self, collection_path: str, data: dict[str, Any], doc_id: str | None = None) -> str:
        doc_id = doc_id or f"doc{next(self._ids)}"
        self.docs[f"{collection_path}/{doc_id}"] = self._stamp(data)
        return doc_id

    async def get(self, path: str) -> Document:
        await asyncio.sleep(0)
        self.failures.check("get")
        return self._document(path)

    async def set(self, path: str, data: dict[str, Any]) -> None:
        await asyncio.sleep(0)
        self.failures.check("set")
        self.docs[path] = self._stamp(data)
        self._publish(path)

    async def update(self, path: str, data: dict[str, Any]) -> None:
        await asyncio.sleep(0)
        self.failures.check("update")
        if path not in self.docs:
            raise RemoteFailure(f"No document to update: {path}")
        self.docs[path] = {**self.docs[path], **self._stamp(data)}
        self._publish(path)

    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        await asyncio.sleep(0)
        self.failures.check("add")
        return self.seed(collection_path, data)

    async def delete(self, path: str) -> None:
        await asyncio.sleep(0)
        self.failures.check("delete")
        self.docs.pop(path, None)
        self._publish(path)

    async def query(
        self,
        collection_path: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]:
        if self.query_gate is not None:
            await self.query_gate.wait()
        await asyncio.sleep(0)
        self.failures.check("query")

        prefix = collection_path + "/"
        matches = [
            self._document(path)
            for path in self.docs
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        ]
        for field, op, value in filters:
            assert op == "==", f"unsupported operator {op}"
            matches = [doc for doc in matches if doc.data.get(field) == value]
        if order_by:
            matches.sort(key=lambda doc: doc.data[order_by], reverse=descending)
        return matches

    def on_snapshot(
        self,
        path: str,
        callback: Callable[[Document], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Unsubscribe:
        entry = (callback, on_error)
        self._watchers.setdefault(path, []).append(entry)
        callback(self._document(path))

        def unsubscribe() -> None:
            watchers = self._watchers.get(path, [])
            if entry in watchers:
                watchers.remove(entry)

        return unsubscribe

    def watcher_count(self, path: str) -> int:
        return len(self._watchers.get(path, []))

    def break_watch(self, path: str, error: Exception) -> None:
        for _, on_error in list(self._watchers.get(path, [])):
            if on_error is not None:
                on_error(error)

    def batch(self) -> InMemoryBatch:
        return InMemoryBatch(self)


class InMemoryObjectStorage:
    def __init__(self, configured: bool = True):
        self.configured = configured
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.failures = Failures()

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        if not self.configured:
            raise NotConfigured("Note storage is disabled: S3 is not configured.")
        await asyncio.sleep(0)
        self.failures.check("upload")
        self.objects[path] = (data, content_type)
        return path

    def get_public_url(self, path: str) -> str:
        return f"https://storage.test/{path}"

    async def remove(self, paths: Sequence[str]) -> None:
        if not self.configured:
            raise NotConfigured("Note storage is disabled: S3 is not configured.")
        await asyncio.sleep(0)
        self.failures.check("remove")
        for path in paths:
            self.objects.pop(path, None)


class InMemoryNoteStore:
    def __init__(self, configured: bool = True):
        self.configured = configured
        self.rows: list[NoteRead] = []
        self.failures = Failures()
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    async def insert(self, note: NoteCreate) -> NoteRead:
        if not self.configured:
            raise NotConfigured("Notes are disabled: the note database is not configured.")
        await asyncio.sleep(0)
        self.failures.check("insert")
        self._clock += timedelta(seconds=1)
        row = NoteRead(id=uuid4(), created_at=self._clock, **note.model_dump())
        self.rows.append(row)
        return row

    async def select(self, user_id: str, subject_id: str) -> list[NoteRead]:
        if not self.configured:
            return []
        await asyncio.sleep(0)
        self.failures.check("select")
        rows = [r for r in self.rows if r.user_id == user_id and r.subject_id == subject_id]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    async def delete(self, note_id: UUID, user_id: str) -> None:
        if not self.configured:
            raise NotConfigured("Notes are disabled: the note database is not configured.")
        await asyncio.sleep(0)
        self.failures.check("delete")
        self.rows = [r for r in self.rows if not (r.id == note_id and r.user_id == user_id)]
