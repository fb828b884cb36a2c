"""Profile routes."""

from fastapi import APIRouter, Depends, status

from studydesk.api.deps import WorkspaceDep, get_current_identity
from studydesk.avatars import get_all_avatars
from studydesk.errors import ValidationFailure
from studydesk.schemas.profile import AvatarRead, ProfileData, ProfileSnapshot
from studydesk.validators import validate_profile

router = APIRouter(prefix="/profile", tags=["profile"])


def _validated(data: ProfileData) -> ProfileData:
    errors = validate_profile(data)
    if errors:
        raise ValidationFailure("Invalid profile", errors=errors)
    return data


@router.get("/avatars", response_model=list[AvatarRead])
async def list_avatars() -> list[AvatarRead]:
    """Selectable avatars."""
    return get_all_avatars()


@router.get("", response_model=ProfileSnapshot, dependencies=[Depends(get_current_identity)])
async def get_profile(workspace: WorkspaceDep) -> ProfileSnapshot:
    """Mirrored profile of the signed-in user."""
    return workspace.profile.snapshot()


@router.post("", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(get_current_identity)])
async def create_profile(data: ProfileData, workspace: WorkspaceDep) -> None:
    """
    Create the profile.

    The write goes straight to the document store; GET /profile reflects it
    once the live subscription delivers the committed document.
    """
    await workspace.profile.create_profile(_validated(data))


@router.put("", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(get_current_identity)])
async def update_profile(data: ProfileData, workspace: WorkspaceDep) -> None:
    """Replace the profile. Like create, the mirror updates via the subscription."""
    await workspace.profile.update_profile(_validated(data))
