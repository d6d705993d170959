from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, func, insert, select
from sqlalchemy.pool import StaticPool

from app.core import event_log
from app.db import schema
from app.services.ranking_cache import ranking_cache

NOW = 1_700_000_000
BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class Seeder:
    """Row builders for the in-memory store used across tests."""

    def __init__(self, engine) -> None:
        self.engine = engine
        self._joined = 0

    def _insert(self, table, **values) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(insert(table).values(**values))
            return int(result.inserted_primary_key[0])

    def user(self, user_id: int, username: str | None = None) -> int:
        return self._insert(schema.users, id=user_id, username=username or f"user{user_id}")

    def group(
        self,
        group_id: int,
        *,
        creator_id: int,
        status: str = "active",
        max_members: int | None = None,
        nudge_enabled: bool = False,
        nudge_window_minutes: int | None = 60,
    ) -> int:
        self._insert(
            schema.groups,
            id=group_id,
            name=f"Group {group_id}",
            status=status,
            creator_id=creator_id,
            max_members=max_members,
        )
        self._insert(
            schema.group_rules,
            group_id=group_id,
            nudge_enabled=nudge_enabled,
            nudge_window_minutes=nudge_window_minutes,
        )
        return group_id

    def member(self, group_id: int, user_id: int, *, status: str = "joined") -> int:
        self._joined += 1
        return self._insert(
            schema.group_members,
            group_id=group_id,
            user_id=user_id,
            status=status,
            joined_at=BASE_TIME + timedelta(minutes=self._joined),
        )

    def fixture(
        self,
        fixture_id: int,
        *,
        start_ts: int,
        state: str = "NS",
        result: str | None = None,
        name: str | None = None,
    ) -> int:
        return self._insert(
            schema.fixtures,
            id=fixture_id,
            name=name or f"Match {fixture_id}",
            start_ts=start_ts,
            state=state,
            result=result,
        )

    def group_fixture(self, group_id: int, fixture_id: int) -> int:
        return self._insert(schema.group_fixtures, group_id=group_id, fixture_id=fixture_id)

    def prediction(
        self,
        group_id: int,
        group_fixture_id: int,
        user_id: int,
        *,
        prediction: str = "1:0",
        points: str | None = None,
        correct_score: bool | None = None,
        match_winner: bool | None = None,
    ) -> int:
        return self._insert(
            schema.group_predictions,
            group_id=group_id,
            group_fixture_id=group_fixture_id,
            user_id=user_id,
            prediction=prediction,
            points=points,
            winning_correct_score=correct_score,
            winning_match_winner=match_winner,
            placed_at=BASE_TIME,
            updated_at=BASE_TIME,
        )

    def count(self, table) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(select(func.count()).select_from(table)).scalar() or 0)

    def rows(self, table) -> list:
        with self.engine.connect() as conn:
            return conn.execute(select(table).order_by(table.c.id)).all()


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    schema.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine) -> Seeder:
    return Seeder(engine)


@pytest.fixture
def league(db: Seeder) -> Seeder:
    """Active group 1 created by user 1, with users 1-3 joined and three fixtures.

    Fixture 10 kicks off in 30 minutes, 11 in two days, 12 is live.
    """
    for user_id, name in ((1, "alice"), (2, "bob"), (3, "carol")):
        db.user(user_id, name)
    db.group(1, creator_id=1, nudge_enabled=True, nudge_window_minutes=60)
    for user_id in (1, 2, 3):
        db.member(1, user_id)
    db.fixture(10, start_ts=NOW + 1800)
    db.fixture(11, start_ts=NOW + 2 * 86400)
    db.fixture(12, start_ts=NOW - 600, state="1H")
    for fixture_id in (10, 11, 12):
        db.group_fixture(1, fixture_id)
    return db


@pytest.fixture(autouse=True)
def _reset_process_state():
    ranking_cache.clear()
    event_log.set_log_path(None)
    yield
    ranking_cache.clear()
    event_log.set_log_path(None)


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "logs" / "events.jsonl"
    event_log.set_log_path(path)
    yield path
