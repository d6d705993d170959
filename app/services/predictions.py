from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from sqlalchemy.engine import Engine, Row

from app.core.errors import BadRequestError, NotFoundError
from app.core.event_log import log_prediction_batch_saved, log_prediction_rejected, log_prediction_saved
from app.db.coerce import format_prediction, validate_score
from app.db.group_store import find_group_fixture_by_group_and_fixture, find_group_fixtures_by_fixture_ids
from app.db.prediction_store import upsert_prediction, upsert_predictions_batch
from app.services.eligibility import has_match_started
from app.services.permissions import assert_group_member
from app.services.ranking_cache import invalidate_ranking_cache
from app.utils.dates import now_unix_seconds, utc_from_unix

logger = logging.getLogger(__name__)

REJECT_MATCH_STARTED = "match_started"


@dataclass
class RejectedPrediction:
    fixture_id: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"fixture_id": self.fixture_id, "reason": self.reason}


@dataclass
class BatchSaveResult:
    message: str
    saved: list[int] = field(default_factory=list)
    rejected: list[RejectedPrediction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "success",
            "message": self.message,
            "saved": [{"fixture_id": fixture_id} for fixture_id in self.saved],
            "rejected": [r.to_dict() for r in self.rejected],
        }


def find_started_fixtures_by_ids(
    engine: Engine,
    group_id: int,
    fixture_ids: list[int],
    *,
    now: int | None = None,
) -> list[Row]:
    """Group fixtures among ``fixture_ids`` whose match has already started."""
    rows = find_group_fixtures_by_fixture_ids(engine, group_id, fixture_ids)
    return [row for row in rows if has_match_started(row, now=now)]


def _signal_ranking_invalidation(group_id: int) -> None:
    # Runs after the write committed; the caller never waits on or sees its failure.
    try:
        invalidate_ranking_cache([group_id])
    except Exception:  # noqa: BLE001
        logger.warning("Failed to invalidate ranking cache for group %s", group_id, exc_info=True)


def save_group_prediction(
    engine: Engine,
    group_id: int,
    fixture_id: int,
    user_id: int,
    *,
    home: Any,
    away: Any,
    now: int | None = None,
) -> dict[str, str]:
    """Save or update one prediction.

    Checks, in order: membership, score range, fixture belongs to the group,
    fixture not started. The upsert keys on (user, group fixture); placed_at
    is set on first insert only.
    """
    assert_group_member(engine, group_id, user_id)
    validate_score(home, "home")
    validate_score(away, "away")

    group_fixture = find_group_fixture_by_group_and_fixture(engine, group_id, fixture_id)
    if group_fixture is None:
        raise NotFoundError(f"Fixture {fixture_id} does not belong to group {group_id}")

    current = now_unix_seconds() if now is None else now
    if has_match_started(group_fixture, now=current):
        raise BadRequestError("Cannot predict after kickoff")

    upsert_prediction(
        engine,
        group_id=group_id,
        group_fixture_id=group_fixture.id,
        user_id=user_id,
        prediction=format_prediction(home, away),
        now=utc_from_unix(current),
    )
    log_prediction_saved(group_id, user_id, fixture_id)
    _signal_ranking_invalidation(group_id)

    return {"status": "success", "message": "Prediction saved successfully"}


def _validate_batch(predictions: list[Mapping[str, Any]]) -> list[int]:
    fixture_ids: list[int] = []
    for item in predictions:
        fixture_id = item.get("fixture_id")
        if isinstance(fixture_id, bool) or not isinstance(fixture_id, int):
            raise BadRequestError("fixture_id must be an integer")
        validate_score(item.get("home"), "home")
        validate_score(item.get("away"), "away")
        fixture_ids.append(fixture_id)
    if len(set(fixture_ids)) != len(fixture_ids):
        raise BadRequestError("Each fixture may appear only once per batch")
    return fixture_ids


def save_group_predictions_batch(
    engine: Engine,
    group_id: int,
    user_id: int,
    predictions: Iterable[Mapping[str, Any]],
    *,
    now: int | None = None,
) -> BatchSaveResult:
    """Save several predictions with partial success.

    A fixture outside the group or a bad score fails the whole batch. A fixture
    that has already started is only moved to ``rejected``; everything else
    is written in one transaction.
    """
    assert_group_member(engine, group_id, user_id)
    items = list(predictions)
    if not items:
        return BatchSaveResult(message="No predictions to save")

    fixture_ids = _validate_batch(items)

    group_fixtures = find_group_fixtures_by_fixture_ids(engine, group_id, fixture_ids)
    if len(group_fixtures) != len(fixture_ids):
        raise BadRequestError(f"One or more fixtures do not belong to group {group_id}")
    group_fixture_by_fixture = {row.fixture_id: row.id for row in group_fixtures}

    current = now_unix_seconds() if now is None else now
    started = {row.fixture_id for row in find_started_fixtures_by_ids(engine, group_id, fixture_ids, now=current)}

    to_upsert: list[dict[str, Any]] = []
    saved: list[int] = []
    rejected: list[RejectedPrediction] = []
    for item in items:
        fixture_id = item["fixture_id"]
        if fixture_id in started:
            rejected.append(RejectedPrediction(fixture_id=fixture_id, reason=REJECT_MATCH_STARTED))
            log_prediction_rejected(group_id, user_id, fixture_id, reason=REJECT_MATCH_STARTED)
            continue
        to_upsert.append(
            {
                "group_fixture_id": group_fixture_by_fixture[fixture_id],
                "prediction": format_prediction(item["home"], item["away"]),
            }
        )
        saved.append(fixture_id)

    if not to_upsert:
        return BatchSaveResult(message="No predictions saved", rejected=rejected)

    upsert_predictions_batch(engine, group_id, user_id, to_upsert, now=utc_from_unix(current))
    logger.info(
        "Saved %d prediction(s) for user %s in group %s (%d rejected)",
        len(saved),
        user_id,
        group_id,
        len(rejected),
    )
    log_prediction_batch_saved(group_id, user_id, saved=len(saved), rejected=len(rejected))
    _signal_ranking_invalidation(group_id)

    return BatchSaveResult(
        message=f"{len(saved)} prediction(s) saved successfully",
        saved=saved,
        rejected=rejected,
    )
