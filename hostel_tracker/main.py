import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text
from sqlmodel import Session

from hostel_tracker.core.config import CORS_ORIGINS
from hostel_tracker.core.exceptions import HostelTrackerError, UpstreamError, ValidationError
from hostel_tracker.core.logging_config import generate_request_id, request_id_var, setup_logging
from hostel_tracker.db.db import get_session, init_db
from hostel_tracker.routers import analytics, announcements, auth, issues, lost_found, notifications

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Hostel Tracker API started")
    yield


app = FastAPI(title="Hostel Tracker API", version="1.0.0", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    token = request_id_var.set(generate_request_id())
    started = time.perf_counter()
    try:
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        response.headers["X-Request-ID"] = request_id_var.get()
        return response
    finally:
        request_id_var.reset(token)


@app.exception_handler(HostelTrackerError)
async def handle_hostel_tracker_error(request: Request, exc: HostelTrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    # same shape as form validation failures
    return await handle_hostel_tracker_error(
        request,
        ValidationError("Invalid input", details={"errors": jsonable_encoder(exc.errors())}),
    )


@app.exception_handler(SQLAlchemyError)
async def handle_data_store_error(request: Request, exc: SQLAlchemyError):
    # reads bypass db.commit, so store failures on them land here
    logger.error("Data store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return await handle_hostel_tracker_error(request, UpstreamError("Data store operation failed"))


# Register routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(issues.router, prefix="/issues", tags=["Issues"])
app.include_router(lost_found.router, prefix="/lostfound", tags=["Lost & Found"])
app.include_router(announcements.router, prefix="/announcements", tags=["Announcements"])
app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@app.get("/")
def root():
    return {"status": "ok", "message": "Hostel Tracker API", "version": app.version}


@app.get("/health")
def health(session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error("Health check could not reach the database: %s", e)
        database = "disconnected"

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
    }
