import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.health import router as health_router
from app.api.nudges import router as nudges_router
from app.api.predictions import router as predictions_router
from app.core.config import settings
from app.core.errors import ApiError
from app.core.event_log import set_log_path

logging.basicConfig(level=settings.log_level.upper())
set_log_path(settings.event_log_path)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(health_router)
app.include_router(predictions_router, prefix="/api")
app.include_router(nudges_router, prefix="/api")


@app.get("/", tags=["root"])
def root() -> dict:
    return {"message": "ok"}
