"""Reads and writes for groups, rules, members and group fixtures."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, text, update
from sqlalchemy.engine import Engine, Row

from app.db import schema
from app.db.integrity import insert_for


def find_group(engine: Engine, group_id: int) -> Row | None:
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select id, name, status, creator_id, max_members
                from groups
                where id = :gid
                """
            ),
            {"gid": group_id},
        ).first()


def find_member(engine: Engine, group_id: int, user_id: int) -> Row | None:
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select id, group_id, user_id, status, joined_at
                from group_members
                where group_id = :gid and user_id = :uid
                """
            ),
            {"gid": group_id, "uid": user_id},
        ).first()


def find_members_with_users(engine: Engine, group_id: int) -> list[Row]:
    """Joined members with their usernames, in join order."""
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select gm.user_id, u.username, gm.joined_at
                from group_members gm
                join users u on u.id = gm.user_id
                where gm.group_id = :gid
                  and gm.status = 'joined'
                order by gm.joined_at asc, gm.id asc
                """
            ),
            {"gid": group_id},
        ).all()


def count_joined_members(engine: Engine, group_id: int) -> int:
    with engine.connect() as conn:
        value = conn.execute(
            text("select count(*) from group_members where group_id = :gid and status = 'joined'"),
            {"gid": group_id},
        ).scalar()
    return int(value or 0)


def find_group_rules(engine: Engine, group_id: int) -> Row | None:
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select group_id, on_the_nose_points, correct_difference_points, outcome_points,
                       nudge_enabled, nudge_window_minutes
                from group_rules
                where group_id = :gid
                """
            ),
            {"gid": group_id},
        ).first()


def find_active_groups(engine: Engine) -> list[Row]:
    with engine.connect() as conn:
        return conn.execute(
            text("select id, name from groups where status = 'active' order by id asc")
        ).all()


def _group_fixture_select():
    gf = schema.group_fixtures
    fx = schema.fixtures
    return (
        select(
            gf.c.id,
            gf.c.group_id,
            gf.c.fixture_id,
            gf.c.id.label("group_fixture_id"),
            fx.c.name,
            fx.c.start_ts,
            fx.c.state,
            fx.c.result,
        )
        .select_from(gf.join(fx, fx.c.id == gf.c.fixture_id))
    )


def find_group_fixture_by_group_and_fixture(engine: Engine, group_id: int, fixture_id: int) -> Row | None:
    gf = schema.group_fixtures
    stmt = _group_fixture_select().where(gf.c.group_id == group_id, gf.c.fixture_id == fixture_id)
    with engine.connect() as conn:
        return conn.execute(stmt).first()


def find_group_fixtures_by_fixture_ids(engine: Engine, group_id: int, fixture_ids: list[int]) -> list[Row]:
    if not fixture_ids:
        return []
    gf = schema.group_fixtures
    stmt = _group_fixture_select().where(gf.c.group_id == group_id, gf.c.fixture_id.in_(fixture_ids))
    with engine.connect() as conn:
        return conn.execute(stmt).all()


def find_group_fixtures_with_fixture_details(engine: Engine, group_id: int) -> list[Row]:
    """All fixtures of a group, earliest kickoff first."""
    gf = schema.group_fixtures
    fx = schema.fixtures
    stmt = (
        _group_fixture_select()
        .where(gf.c.group_id == group_id)
        .order_by(fx.c.start_ts.asc(), gf.c.fixture_id.asc())
    )
    with engine.connect() as conn:
        return conn.execute(stmt).all()


def update_group_status(engine: Engine, group_id: int, status: str, *, now: datetime) -> None:
    groups = schema.groups
    with engine.begin() as conn:
        conn.execute(
            update(groups)
            .where(groups.c.id == group_id)
            .values(status=status, updated_at=now)
        )


def upsert_member(engine: Engine, group_id: int, user_id: int, *, status: str, now: datetime) -> None:
    """Insert the (group, user) row or flip its status; rows are never deleted."""
    table = schema.group_members
    row: dict[str, Any] = {"group_id": group_id, "user_id": user_id, "status": status, "joined_at": now}
    with engine.begin() as conn:
        stmt = insert_for(conn, table).values(row)
        update_cols: dict[str, Any] = {"status": stmt.excluded.status}
        if status == "joined":
            update_cols["joined_at"] = stmt.excluded.joined_at
        stmt = stmt.on_conflict_do_update(index_elements=["group_id", "user_id"], set_=update_cols)
        conn.execute(stmt)
