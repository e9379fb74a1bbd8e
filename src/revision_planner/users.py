from __future__ import annotations

from typing import List

from .config import settings


def list_user_ids() -> List[int]:
    """Return the selectable user IDs in configured order."""
    return list(settings.user_ids)


def is_known_user(user_id: int) -> bool:
    return user_id in settings.user_ids
