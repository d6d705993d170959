"""Reads and writes for predictions, nudges and reminder events.

Uniqueness is enforced by the store, never re-derived here: predictions are
upserted on (user_id, group_fixture_id), nudges are inserted and a unique
violation is surfaced as DuplicateRowError.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, text
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import IntegrityError

from app.db import schema
from app.db.integrity import DuplicateRowError, insert_for, is_unique_violation

PREDICTION_CONFLICT_COLS = ["user_id", "group_fixture_id"]


def _upsert_prediction_rows(conn: Connection, rows: list[dict[str, Any]]) -> int:
    if not rows:
        return 0
    table = schema.group_predictions
    stmt = insert_for(conn, table).values(rows)
    # placed_at keeps its first-insert value.
    stmt = stmt.on_conflict_do_update(
        index_elements=PREDICTION_CONFLICT_COLS,
        set_={
            "prediction": stmt.excluded.prediction,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    result = conn.execute(stmt)
    count = result.rowcount
    if count is None or count < 0:
        count = len(rows)
    return count


def upsert_prediction(
    engine: Engine,
    *,
    group_id: int,
    group_fixture_id: int,
    user_id: int,
    prediction: str,
    now: datetime,
) -> None:
    row = {
        "group_id": group_id,
        "group_fixture_id": group_fixture_id,
        "user_id": user_id,
        "prediction": prediction,
        "placed_at": now,
        "updated_at": now,
    }
    with engine.begin() as conn:
        _upsert_prediction_rows(conn, [row])


def upsert_predictions_batch(
    engine: Engine,
    group_id: int,
    user_id: int,
    predictions: list[dict[str, Any]],
    *,
    now: datetime,
) -> int:
    """Upsert every {group_fixture_id, prediction} in one transaction."""
    rows = [
        {
            "group_id": group_id,
            "group_fixture_id": item["group_fixture_id"],
            "user_id": user_id,
            "prediction": item["prediction"],
            "placed_at": now,
            "updated_at": now,
        }
        for item in predictions
    ]
    with engine.begin() as conn:
        return _upsert_prediction_rows(conn, rows)


def find_prediction(engine: Engine, user_id: int, group_fixture_id: int) -> Row | None:
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select id, group_id, group_fixture_id, user_id, prediction, points,
                       placed_at, updated_at, settled_at
                from group_predictions
                where user_id = :uid and group_fixture_id = :gfid
                """
            ),
            {"uid": user_id, "gfid": group_fixture_id},
        ).first()


def find_prediction_user_ids_by_group_fixture_ids(
    engine: Engine, group_id: int, group_fixture_ids: list[int]
) -> list[Row]:
    if not group_fixture_ids:
        return []
    gp = schema.group_predictions
    stmt = select(gp.c.group_fixture_id, gp.c.user_id).where(
        gp.c.group_id == group_id,
        gp.c.group_fixture_id.in_(group_fixture_ids),
    )
    with engine.connect() as conn:
        return conn.execute(stmt).all()


def find_predictions_for_overview(engine: Engine, group_id: int) -> list[Row]:
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select gp.user_id, gf.fixture_id, gp.prediction, gp.points, gp.settled_at
                from group_predictions gp
                join group_fixtures gf on gf.id = gp.group_fixture_id
                where gp.group_id = :gid
                """
            ),
            {"gid": group_id},
        ).all()


def find_member_prediction_rows(engine: Engine, group_id: int) -> list[Row]:
    """Per-prediction rows of joined members, for the ranking fold.

    Points stay text here; the caller parses each value so that one malformed
    row counts as zero instead of failing the whole aggregate.
    """
    with engine.connect() as conn:
        return conn.execute(
            text(
                """
                select gp.user_id, u.username, gp.points,
                       gp.winning_correct_score, gp.winning_match_winner
                from group_predictions gp
                join group_members gm on gm.group_id = gp.group_id and gm.user_id = gp.user_id
                join users u on u.id = gp.user_id
                where gp.group_id = :gid
                  and gm.status = 'joined'
                """
            ),
            {"gid": group_id},
        ).all()


def find_nudges_by_nudger_in_group(
    engine: Engine, group_id: int, nudger_user_id: int, fixture_ids: list[int]
) -> list[Row]:
    if not fixture_ids:
        return []
    gn = schema.group_nudges
    stmt = select(gn.c.target_user_id, gn.c.fixture_id).where(
        gn.c.group_id == group_id,
        gn.c.nudger_user_id == nudger_user_id,
        gn.c.fixture_id.in_(fixture_ids),
    )
    with engine.connect() as conn:
        return conn.execute(stmt).all()


def create_nudge_event(
    engine: Engine,
    *,
    group_id: int,
    fixture_id: int,
    nudger_user_id: int,
    target_user_id: int,
    now: datetime,
) -> None:
    try:
        with engine.begin() as conn:
            conn.execute(
                insert(schema.group_nudges).values(
                    group_id=group_id,
                    fixture_id=fixture_id,
                    nudger_user_id=nudger_user_id,
                    target_user_id=target_user_id,
                    created_at=now,
                )
            )
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise DuplicateRowError("Nudge already sent") from exc
        raise


def insert_activity_event(
    conn: Connection,
    *,
    user_id: int,
    group_id: int,
    fixture_id: int,
    event_type: str,
    body: str,
    now: datetime,
) -> bool:
    """Insert one activity event; returns False when it already existed."""
    table = schema.user_activity_events
    stmt = insert_for(conn, table).values(
        user_id=user_id,
        group_id=group_id,
        fixture_id=fixture_id,
        event_type=event_type,
        body=body,
        created_at=now,
    )
    stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "group_id", "fixture_id", "event_type"])
    result = conn.execute(stmt)
    return bool(result.rowcount and result.rowcount > 0)
