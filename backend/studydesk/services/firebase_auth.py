"""
Firebase Authentication provider (email/password).

Flow:
1. sign_up / sign_in POST credentials to the Identity Toolkit REST API
2. The returned id_token is verified with Google's public keys (google-auth)
3. The verified claims become the current Identity
4. Every identity change is pushed to registered listeners

Session restore exchanges a stored refresh token for a fresh id_token via
the Secure Token API. We keep the refresh token only in memory.
"""

import asyncio
import logging
from typing import Any

import httpx
from google.auth import jwt as google_jwt
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from studydesk.config import Settings, get_settings
from studydesk.errors import AuthError, NotConfigured, RemoteFailure
from studydesk.schemas.auth import Identity
from studydesk.services.base import IdentityListener, Unsubscribe

logger = logging.getLogger(__name__)

# Identity Toolkit error codes -> machine-readable kinds
_ERROR_KINDS = {
    "EMAIL_EXISTS": "email-already-in-use",
    "INVALID_EMAIL": "invalid-email",
    "WEAK_PASSWORD": "weak-password",
    "EMAIL_NOT_FOUND": "invalid-credential",
    "INVALID_PASSWORD": "invalid-credential",
    "INVALID_LOGIN_CREDENTIALS": "invalid-credential",
    "INVALID_REFRESH_TOKEN": "invalid-credential",
    "TOKEN_EXPIRED": "invalid-credential",
    "USER_DISABLED": "user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "too-many-requests",
}


def _auth_error(response: httpx.Response) -> AuthError:
    """Build an AuthError from an Identity Toolkit error response."""
    try:
        body = response.json()
        message = body["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = f"HTTP {response.status_code}"
    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    code = message.split(" : ", 1)[0].strip()
    return AuthError(message, kind=_ERROR_KINDS.get(code, "unknown"))


class FirebaseAuthProvider:
    """Auth provider backed by the Firebase Identity Toolkit REST API."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        if not self.settings.firebase_api_key:
            raise NotConfigured("Firebase is not configured: set FIREBASE_API_KEY.")

        self.http = http_client or httpx.AsyncClient(timeout=10.0)
        self._listeners: list[IdentityListener] = []
        self._current: Identity | None = None
        self._resolved = False
        self.refresh_token: str | None = None

    # -------------------------------------------------------------------------
    # Identity stream
    # -------------------------------------------------------------------------

    @property
    def current_identity(self) -> Identity | None:
        return self._current

    def on_identity_change(self, listener: IdentityListener) -> Unsubscribe:
        """
        Register an identity listener.

        If the initial identity is already known, the listener is called
        immediately; otherwise it is called once restore() resolves.
        """
        self._listeners.append(listener)
        if self._resolved:
            listener(self._current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_identity(self, identity: Identity | None) -> None:
        self._current = identity
        self._resolved = True
        for listener in list(self._listeners):
            listener(identity)

    # -------------------------------------------------------------------------
    # Token handling
    # -------------------------------------------------------------------------

    async def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self.http.post(url, params={"key": self.settings.firebase_api_key}, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteFailure(f"Authentication service unreachable: {e}") from e
        if response.status_code != 200:
            raise _auth_error(response)
        return response.json()

    async def _identity_from_token(self, id_token: str) -> Identity:
        """Verify an id_token (when enabled) and build an Identity from its claims."""
        if self.settings.firebase_verify_id_tokens:
            try:
                claims = await asyncio.to_thread(
                    google_id_token.verify_firebase_token,
                    id_token,
                    google_requests.Request(),
                    audience=self.settings.firebase_project_id,
                )
            except ValueError as e:
                raise AuthError(f"Invalid Firebase id_token: {e}", kind="invalid-credential") from e
        else:
            claims = google_jwt.decode(id_token, verify=False)

        user_id = claims.get("user_id") or claims.get("sub")
        if not user_id:
            raise AuthError("Firebase id_token has no subject", kind="invalid-credential")
        return Identity(id=user_id, email=claims.get("email"))

    async def _complete_sign_in(self, payload: dict[str, Any]) -> Identity:
        identity = await self._identity_from_token(payload["idToken"])
        self.refresh_token = payload.get("refreshToken")
        self._set_identity(identity)
        return identity

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def sign_up(self, email: str, password: str) -> Identity:
        payload = await self._post(
            f"{self.settings.firebase_auth_url}/accounts:signUp",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info("Created account %s", payload.get("localId"))
        return await self._complete_sign_in(payload)

    async def sign_in(self, email: str, password: str) -> Identity:
        payload = await self._post(
            f"{self.settings.firebase_auth_url}/accounts:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return await self._complete_sign_in(payload)

    async def sign_out(self) -> None:
        # Firebase id_tokens are stateless; signing out drops our tokens
        self.refresh_token = None
        self._set_identity(None)

    async def restore(self, refresh_token: str | None = None) -> Identity | None:
        """
        Resolve the initial identity.

        With a refresh token, exchanges it for a fresh id_token. A rejected
        or missing token resolves to signed-out rather than raising.
        """
        identity = None
        if refresh_token:
            try:
                payload = await self._post(
                    self.settings.firebase_token_url,
                    data={"grant_type": "refresh_token", "refresh_token": refresh_token},
                )
                identity = await self._identity_from_token(payload["id_token"])
                self.refresh_token = payload.get("refresh_token")
            except RemoteFailure as e:
                logger.warning("Session restore failed, starting signed out: %s", e)
        self._set_identity(identity)
        return identity

    async def aclose(self) -> None:
        await self.http.aclose()
