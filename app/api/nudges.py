from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.deps import current_user_id
from app.db.engine import get_engine
from app.services.nudges import send_nudge

router = APIRouter()


class NudgeRequest(BaseModel):
    target_user_id: int
    fixture_id: int


@router.post("/groups/{group_id}/nudge", status_code=201, tags=["nudges"])
def post_nudge(group_id: int, req: NudgeRequest, user_id: int = Depends(current_user_id)) -> dict:
    return send_nudge(get_engine(), group_id, user_id, req.target_user_id, req.fixture_id)
