"""Session store: bridges the auth provider's identity stream into local state."""

import logging
from collections.abc import Awaitable, Callable

from studydesk.errors import RemoteFailure
from studydesk.schemas.auth import Identity, SessionSnapshot
from studydesk.services.base import AuthProvider, IdentityListener, Unsubscribe
from studydesk.sync.observable import Observable

logger = logging.getLogger(__name__)


class SessionStore(Observable):
    """
    Current identity plus sign-up/sign-in/sign-out.

    `is_loading` stays true until the provider's first notification. Every
    notification replaces `current_identity`; identity listeners are told
    about the first notification and about every actual change.
    """

    def __init__(self, provider: AuthProvider):
        super().__init__()
        self.provider = provider
        self.current_identity: Identity | None = None
        self.is_loading = True
        self.error: str | None = None
        self._identity_listeners: list[IdentityListener] = []
        self._unsubscribe: Unsubscribe | None = None

    def init(self) -> None:
        """Subscribe to the provider's identity stream (once)."""
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_identity_change(self._handle_identity)

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_identity_changed(self, listener: IdentityListener) -> Unsubscribe:
        self._identity_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._identity_listeners:
                self._identity_listeners.remove(listener)

        return unsubscribe

    def _handle_identity(self, identity: Identity | None) -> None:
        changed = self.is_loading or identity != self.current_identity
        self.current_identity = identity
        self.is_loading = False
        if changed:
            for listener in list(self._identity_listeners):
                listener(identity)
        self._notify()

    async def _run(self, action: str, call: Callable[[], Awaitable]):
        self.error = None
        try:
            return await call()
        except RemoteFailure as e:
            logger.error("%s failed: %s", action, e)
            self.error = e.message
            self._notify()
            raise

    async def sign_up(self, email: str, password: str) -> Identity:
        return await self._run("Sign up", lambda: self.provider.sign_up(email, password))

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self._run("Sign in", lambda: self.provider.sign_in(email, password))

    async def sign_out(self) -> None:
        """Clear the local identity immediately, then sign out with the provider."""
        self._handle_identity(None)
        await self._run("Sign out", self.provider.sign_out)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            identity=self.current_identity,
            is_loading=self.is_loading,
            error=self.error,
        )
