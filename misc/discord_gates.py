from __future__ import annotations

from typing import Iterable

from controller.errors import PermissionDenied


def is_owner(owner_ids: Iterable[int], user_id: int | None) -> bool:
    if user_id is None:
        return False
    return int(user_id) in set(owner_ids)


def require_owner(owner_ids: Iterable[int], user_id: int, action: str) -> None:
    if not is_owner(owner_ids, user_id):
        print(f"[Perm] denied user={user_id} action={action}")
        raise PermissionDenied(user_id, action)


def owns_or_admin(owner_ids: Iterable[int], user_id: int, resource_owner_id: int | None, action: str) -> None:
    """Allow the resource's owner or a bot owner; everyone else is denied."""
    if resource_owner_id is not None and int(resource_owner_id) == int(user_id):
        return
    require_owner(owner_ids, user_id, action)
