from fastapi import APIRouter
from sqlalchemy import text

from app.db.engine import get_engine

router = APIRouter()


@router.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/db", tags=["health"])
def health_db() -> dict:
    engine = get_engine()
    with engine.connect() as conn:
        conn.execute(text("select 1"))
    return {"status": "ok", "database": "reachable"}
