from __future__ import annotations

from fastapi import Header


def current_user_id(x_user_id: int = Header(..., alias="X-User-Id", ge=1)) -> int:
    """Caller identity; authentication happens upstream of this service."""
    return x_user_id
