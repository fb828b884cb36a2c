"""
Error taxonomy shared by the sync engines, adapters and HTTP layer.

- Unauthenticated: no identity; the operation is never attempted.
- ValidationFailure: missing/invalid input caught before any remote call.
- RemoteFailure: a provider call was rejected (network, permission, quota).
- NotConfigured: an optional integration has no credentials.
"""


class StudyDeskError(Exception):
    """Base class for all StudyDesk errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(StudyDeskError):
    """Raised when an operation requires a signed-in identity."""

    def __init__(self, message: str = "User must be authenticated"):
        super().__init__(message)


class ValidationFailure(StudyDeskError):
    """Raised when input fails validation. `errors` maps field names to messages."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class RemoteFailure(StudyDeskError):
    """Raised when an external provider rejects a call."""

    def __init__(self, message: str, kind: str | None = None):
        super().__init__(message)
        self.kind = kind


class AuthError(RemoteFailure):
    """
    Authentication provider failure with a machine-readable kind.

    Kinds: email-already-in-use, invalid-email, weak-password,
    invalid-credential, user-disabled, too-many-requests, unknown.
    """

    def __init__(self, message: str, kind: str = "unknown"):
        super().__init__(message, kind=kind)


class NotConfigured(StudyDeskError):
    """Raised when a write targets an integration that has no credentials."""
