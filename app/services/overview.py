from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Engine

from app.db.coerce import json_safe
from app.db.group_store import find_group_fixtures_with_fixture_details, find_members_with_users
from app.db.prediction_store import find_predictions_for_overview
from app.services.eligibility import has_match_started
from app.services.permissions import assert_group_member
from app.utils.dates import now_unix_seconds


def get_predictions_overview(engine: Engine, group_id: int, user_id: int, *, now: int | None = None) -> dict[str, Any]:
    """Who predicted what, hiding other members' picks until kickoff."""
    assert_group_member(engine, group_id, user_id)
    current = now_unix_seconds() if now is None else now

    participants = [
        {"id": m.user_id, "username": m.username, "number": index + 1}
        for index, m in enumerate(find_members_with_users(engine, group_id))
    ]

    started_by_fixture: dict[int, bool] = {}
    fixtures: list[dict[str, Any]] = []
    for gf in find_group_fixtures_with_fixture_details(engine, group_id):
        started = has_match_started(gf, now=current)
        started_by_fixture[gf.fixture_id] = started
        fixtures.append(
            {
                "id": gf.fixture_id,
                "name": gf.name,
                "start_ts": gf.start_ts,
                "state": gf.state,
                "result": gf.result,
                "started": started,
            }
        )

    predictions: dict[str, str] = {}
    for row in find_predictions_for_overview(engine, group_id):
        if row.user_id == user_id or started_by_fixture.get(row.fixture_id, False):
            predictions[f"{row.user_id}_{row.fixture_id}"] = row.prediction

    return json_safe(
        {
            "status": "success",
            "data": {
                "participants": participants,
                "fixtures": fixtures,
                "predictions": predictions,
            },
            "message": "Predictions overview fetched successfully",
        }
    )
