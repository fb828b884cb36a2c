"""Predefined avatars for profile selection."""

from studydesk.schemas.profile import AvatarRead

AVATARS: dict[str, list[AvatarRead]] = {
    group: [
        AvatarRead(id=f"{group}_{n}", label=f"{group.title()} Avatar {n}", group=group)
        for n in range(1, 7)
    ]
    for group in ("male", "female")
}


def get_all_avatars() -> list[AvatarRead]:
    """All avatars as a flat list."""
    return [*AVATARS["male"], *AVATARS["female"]]


def get_avatar_by_id(avatar_id: str) -> AvatarRead | None:
    return next((a for a in get_all_avatars() if a.id == avatar_id), None)
