"""
FastAPI dependencies for the workspace and the signed-in identity.

Key patterns:
1. The application hosts one Workspace, created at startup and kept on app.state
2. get_current_identity: returns the session's identity or raises 401
3. Every engine operation scopes itself by that identity; routes never pass user ids

No per-request authentication: the workspace is a companion backend for a
single signed-in user, and its session store is the source of identity.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from studydesk.schemas.auth import Identity
from studydesk.sync.workspace import Workspace


def get_workspace(request: Request) -> Workspace:
    """Workspace created by the application lifespan."""
    return request.app.state.workspace


WorkspaceDep = Annotated[Workspace, Depends(get_workspace)]


async def get_current_identity(workspace: WorkspaceDep) -> Identity:
    """
    Return the current identity.

    Raises 401 while the session is still resolving or when signed out.
    """
    identity = workspace.session.current_identity
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
