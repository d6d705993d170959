from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine, Row

from app.core.errors import ForbiddenError, NotFoundError
from app.db.group_store import find_group, find_member


@dataclass(frozen=True)
class GroupAccess:
    group: Row
    is_creator: bool


def assert_group_member(engine: Engine, group_id: int, user_id: int) -> GroupAccess:
    """Creator or joined member passes; missing group is 404, anyone else 403."""
    group = find_group(engine, group_id)
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    is_creator = group.creator_id == user_id
    if is_creator:
        return GroupAccess(group=group, is_creator=True)
    member = find_member(engine, group_id, user_id)
    if member is None or member.status != "joined":
        raise ForbiddenError("You are not a member of this group")
    return GroupAccess(group=group, is_creator=False)


def is_joined_member(engine: Engine, group_id: int, user_id: int) -> bool:
    member = find_member(engine, group_id, user_id)
    return member is not None and member.status == "joined"
