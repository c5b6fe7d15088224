from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.logging import configure_logging
from app.models import timesheet_entry  # noqa: F401
from app.routers.timesheet_entries import router as timesheet_entries_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Timesheet service starting")
    yield


app = FastAPI(
    title="Timesheet Tracker",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(timesheet_entries_router)


@app.get("/")
def root():
    return {"status": "Timesheet Tracker running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
