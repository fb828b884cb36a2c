"""Profile mirror: live copy of the signed-in user's profile document."""

import logging
from functools import partial

from pydantic import ValidationError

from studydesk.errors import RemoteFailure, Unauthenticated
from studydesk.schemas.auth import Identity
from studydesk.schemas.profile import ProfileData, ProfileSnapshot
from studydesk.services.base import Document, DocumentStore, Unsubscribe, user_path
from studydesk.sync.observable import Observable

logger = logging.getLogger(__name__)


class ProfileMirror(Observable):
    """
    Mirrors `users/{uid}` through a live subscription.

    The subscription is the only writer of `profile`: create_profile and
    update_profile write through to the store and leave local state alone,
    so the mirror always shows committed server state.
    """

    def __init__(self, store: DocumentStore):
        super().__init__()
        self.store = store
        self.profile: ProfileData | None = None
        self.profile_exists = False
        self.is_loading = False
        self.error: str | None = None
        self._identity: Identity | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._subscription = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def init(self, identity: Identity | None) -> None:
        """Tear down any previous subscription and subscribe for `identity`."""
        self._teardown()
        self._identity = identity
        self.profile = None
        self.profile_exists = False
        self.error = None

        if identity is None:
            self.is_loading = False
            self._notify()
            return

        self.is_loading = True
        self._subscription += 1
        token = self._subscription
        self._notify()
        self._unsubscribe = self.store.on_snapshot(
            user_path(identity.id),
            partial(self._handle_snapshot, token),
            partial(self._handle_error, token),
        )

    def dispose(self) -> None:
        self.init(None)

    def _teardown(self) -> None:
        # Bumping the token drops callbacks already queued by the old listener
        self._subscription += 1
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -------------------------------------------------------------------------
    # Subscription callbacks
    # -------------------------------------------------------------------------

    def _handle_snapshot(self, token: int, document: Document) -> None:
        if token != self._subscription:
            return

        self.profile_exists = document.exists
        raw = document.data.get("profile") if document.exists else None
        try:
            self.profile = ProfileData.model_validate(raw) if raw else None
            self.error = None
        except ValidationError as e:
            logger.error("Malformed profile in %s: %s", document.path, e)
            self.profile = None
            self.error = "Profile data is malformed"
        self.is_loading = False
        self._notify()

    def _handle_error(self, token: int, error: Exception) -> None:
        if token != self._subscription:
            return
        logger.error("Error listening to user profile: %s", error)
        self.error = str(error)
        self.profile = None
        self.profile_exists = False
        self.is_loading = False
        self._notify()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _require_identity(self, action: str) -> Identity:
        if self._identity is None:
            raise Unauthenticated(f"User must be logged in to {action} profile")
        return self._identity

    async def create_profile(self, data: ProfileData) -> None:
        identity = self._require_identity("create")
        self.error = None
        timestamp = self.store.server_timestamp()
        try:
            await self.store.set(
                user_path(identity.id),
                {"profile": data.to_document(), "createdAt": timestamp, "updatedAt": timestamp},
            )
        except RemoteFailure as e:
            logger.exception("Error creating profile")
            self.error = f"Failed to create profile: {e.message}"
            self._notify()
            raise

    async def update_profile(self, data: ProfileData) -> None:
        identity = self._require_identity("update")
        self.error = None
        try:
            await self.store.update(
                user_path(identity.id),
                {"profile": data.to_document(), "updatedAt": self.store.server_timestamp()},
            )
        except RemoteFailure as e:
            logger.exception("Error updating profile")
            self.error = f"Failed to update profile: {e.message}"
            self._notify()
            raise

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def is_profile_complete(self) -> bool:
        return self.profile is not None and self.profile.is_complete()

    def snapshot(self) -> ProfileSnapshot:
        return ProfileSnapshot(
            profile=self.profile,
            profile_exists=self.profile_exists,
            is_profile_complete=self.is_profile_complete,
            is_loading=self.is_loading,
            error=self.error,
        )
