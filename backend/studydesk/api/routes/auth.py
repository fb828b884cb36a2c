"""
Authentication Routes

Endpoints:
- POST /auth/signup - Create an email/password account and sign in
- POST /auth/login - Sign in with email/password
- POST /auth/logout - Sign out
- GET /auth/session - Current session state

The workspace's session store holds the identity. Signing in or out fans the
change out to the profile, collection and notes engines before the response
is sent.
"""

from fastapi import APIRouter, status

from studydesk.api.deps import WorkspaceDep
from studydesk.schemas.auth import CredentialsRequest, Identity, SessionSnapshot

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=Identity, status_code=status.HTTP_201_CREATED)
async def signup(request: CredentialsRequest, workspace: WorkspaceDep) -> Identity:
    """
    Create an account and sign in.

    Provider rejections (email already in use, weak password, ...) come back
    as 400 with a machine-readable `kind`.
    """
    return await workspace.session.sign_up(request.email, request.password)


@router.post("/login", response_model=Identity)
async def login(request: CredentialsRequest, workspace: WorkspaceDep) -> Identity:
    """Sign in with email and password."""
    return await workspace.session.sign_in(request.email, request.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(workspace: WorkspaceDep) -> None:
    """
    Sign out.

    Local state is cleared before the provider call returns, so every
    engine is empty by the time this responds.
    """
    await workspace.session.sign_out()


@router.get("/session", response_model=SessionSnapshot)
async def get_session(workspace: WorkspaceDep) -> SessionSnapshot:
    """Current identity, or null while signed out."""
    return workspace.session.snapshot()
