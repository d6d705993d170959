from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import current_user_id
from app.db.engine import get_engine
from app.services.overview import get_predictions_overview
from app.services.predictions import save_group_prediction, save_group_predictions_batch
from app.services.ranking import get_group_ranking

router = APIRouter()


# Scores stay untyped here: the services check membership first, then ranges.
class PredictionRequest(BaseModel):
    home: Any
    away: Any


class BatchPredictionItem(BaseModel):
    fixture_id: Any
    home: Any
    away: Any


class BatchPredictionRequest(BaseModel):
    predictions: list[BatchPredictionItem] = Field(default_factory=list)


@router.put("/groups/{group_id}/predictions/{fixture_id}", tags=["predictions"])
def put_prediction(
    group_id: int,
    fixture_id: int,
    req: PredictionRequest,
    user_id: int = Depends(current_user_id),
) -> dict:
    return save_group_prediction(
        get_engine(),
        group_id,
        fixture_id,
        user_id,
        home=req.home,
        away=req.away,
    )


@router.put("/groups/{group_id}/predictions", tags=["predictions"])
def put_predictions_batch(
    group_id: int,
    req: BatchPredictionRequest,
    user_id: int = Depends(current_user_id),
) -> dict:
    result = save_group_predictions_batch(
        get_engine(),
        group_id,
        user_id,
        [item.model_dump() for item in req.predictions],
    )
    return result.to_dict()


@router.get("/groups/{group_id}/predictions-overview", tags=["predictions"])
def predictions_overview(group_id: int, user_id: int = Depends(current_user_id)) -> dict:
    return get_predictions_overview(get_engine(), group_id, user_id)


@router.get("/groups/{group_id}/ranking", tags=["ranking"])
async def group_ranking(group_id: int, user_id: int = Depends(current_user_id)) -> dict:
    engine = get_engine()
    items = await asyncio.to_thread(get_group_ranking, engine, group_id, user_id)
    return {
        "status": "success",
        "data": [item.to_dict() for item in items],
        "message": "Ranking fetched successfully",
    }
