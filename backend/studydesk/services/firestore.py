"""Firestore document store for profiles, subjects, assignments and exams."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from studydesk.config import Settings, get_settings
from studydesk.errors import NotConfigured, RemoteFailure
from studydesk.services.base import Document, Filter, Unsubscribe

logger = logging.getLogger(__name__)


def _to_document(path: str, snapshot) -> Document:
    if snapshot is None or not snapshot.exists:
        return Document(path=path, exists=False)
    return Document(path=path, exists=True, data=snapshot.to_dict() or {})


class FirestoreWriteBatch:
    """Atomic batch of deletes. Firestore caps a batch at 500 writes."""

    def __init__(self, client: firestore.AsyncClient):
        self._client = client
        self._batch = client.batch()

    def delete(self, path: str) -> None:
        self._batch.delete(self._client.document(path))

    async def commit(self) -> None:
        try:
            await self._batch.commit()
        except GoogleAPIError as e:
            raise RemoteFailure(f"Batch write failed: {e}") from e


class FirestoreDocumentStore:
    """
    Document store backed by Cloud Firestore.

    Reads and writes go through the async client. Document watches use the
    sync client, whose listener runs on a background thread; callbacks are
    handed back to the event loop that registered the watch.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        if not self.settings.firebase_project_id:
            raise NotConfigured("Firestore is not configured: set FIREBASE_PROJECT_ID.")

        credentials = None
        if self.settings.firebase_credentials_file:
            credentials = service_account.Credentials.from_service_account_file(
                self.settings.firebase_credentials_file
            )
        self._client_kwargs = {
            "project": self.settings.firebase_project_id,
            "credentials": credentials,
        }
        if self.settings.firebase_database:
            self._client_kwargs["database"] = self.settings.firebase_database

        self.client = firestore.AsyncClient(**self._client_kwargs)
        self._watch_client: firestore.Client | None = None

    def _watcher(self) -> firestore.Client:
        if self._watch_client is None:
            self._watch_client = firestore.Client(**self._client_kwargs)
        return self._watch_client

    def server_timestamp(self) -> Any:
        return firestore.SERVER_TIMESTAMP

    async def get(self, path: str) -> Document:
        try:
            snapshot = await self.client.document(path).get()
        except GoogleAPIError as e:
            raise RemoteFailure(f"Failed to read {path}: {e}") from e
        return _to_document(path, snapshot)

    async def set(self, path: str, data: dict[str, Any]) -> None:
        try:
            await self.client.document(path).set(data)
        except GoogleAPIError as e:
            raise RemoteFailure(f"Failed to write {path}: {e}") from e

    async def update(self, path: str, data: dict[str, Any]) -> None:
        try:
            await self.client.document(path).update(data)
        except GoogleAPIError as e:
            raise RemoteFailure(f"Failed to update {path}: {e}") from e

    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        try:
            _, ref = await self.client.collection(collection_path).add(data)
        except GoogleAPIError as e:
            raise RemoteFailure(f"Failed to add to {collection_path}: {e}") from e
        return ref.id

    async def delete(self, path: str) -> None:
        try:
            await self.client.document(path).delete()
        except GoogleAPIError as e:
            raise RemoteFailure(f"Failed to delete {path}: {e}") from e

    async def query(
        self,
        collection_path: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]:
        query = self.client.collection(collection_path)
        for field, op, value in filters:
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)

        try:
            snapshots = await query.get()
        except GoogleAPIError as e:
            raise RemoteFailure(f"Failed to query {collection_path}: {e}") from e
        return [_to_document(s.reference.path, s) for s in snapshots]

    def on_snapshot(
        self,
        path: str,
        callback: Callable[[Document], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Unsubscribe:
        loop = asyncio.get_running_loop()

        def handle(snapshots, changes, read_time) -> None:
            # A document watch delivers no snapshot while the document doesn't exist
            snapshot = snapshots[0] if snapshots else None
            try:
                document = _to_document(path, snapshot)
            except Exception as e:
                logger.exception("Failed to decode snapshot for %s", path)
                if on_error is not None:
                    loop.call_soon_threadsafe(on_error, e)
                return
            loop.call_soon_threadsafe(callback, document)

        watch = self._watcher().document(path).on_snapshot(handle)
        return watch.unsubscribe

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self.client)

