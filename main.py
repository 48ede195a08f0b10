# type: ignore
# pyright: reportGeneralTypeIssues=false
# pyright: reportOptionalMemberAccess=false
"""
Gatepass Service
================
Gate-access coordination backend for a residential building: guards log
visitor arrivals, residents of the target flat are push-notified and approve
or reject, admins broadcast announcements.

Visitor state machine:
    Pending ─► Approved
    Pending ─► Rejected
    (a later decision overwrites an earlier one and re-stamps approvalTime)

Port: 4800
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gatepass.controllers import (
    announcement_controller, directory_controller, system_controller, visitor_controller,
)
from gatepass.core.config import settings
from gatepass.core.dependencies import get_dispatcher, get_visitor_repo
from gatepass.core.errors import ConflictError, PersistenceError
from gatepass.core.logging import get_logger
from gatepass.middleware import MetricsMiddleware, RequestIDMiddleware
from gatepass.schemas import ErrorResponse

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Verify DB connectivity at startup; drain push workers and dispose pool on shutdown."""
    try:
        get_visitor_repo().verify_connection()
        logger.info("Database connection verified")
    except PersistenceError as exc:
        logger.error("Database unreachable at startup, gate requests will fail until it recovers: %s", exc)
    logger.info("Push provider: %s", get_dispatcher().provider.name)
    yield
    get_dispatcher().shutdown(wait=True)
    get_visitor_repo().dispose()
    logger.info("Push workers drained and connection pool disposed")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Gatepass Service",
    description="Visitor approvals and announcements for a residential gate.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


# ── Exception handlers ────────────────────────────────────────────────────
def _error(request: Request, status_code: int, error: str, detail) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, "request_id": req_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e["loc"] if p != "body"), "message": e["msg"]}
        for e in exc.errors()
    ]
    return _error(request, 400, "validation_error", errors)


@app.exception_handler(ConflictError)
async def conflict_exception_handler(request: Request, exc: ConflictError):
    return _error(request, 409, "conflict", str(exc))


@app.exception_handler(PersistenceError)
async def persistence_exception_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure: %s", exc, extra={"request_id": getattr(request.state, "request_id", None)})
    return _error(request, 500, "persistence_error", str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return _error(request, 500, "internal_server_error", str(exc))


# ── Routers ───────────────────────────────────────────────────────────────
app.include_router(system_controller.router)
app.include_router(visitor_controller.router)
app.include_router(directory_controller.router)
app.include_router(announcement_controller.router)
app.include_router(visitor_controller.legacy_router)
app.include_router(directory_controller.legacy_router)
app.include_router(announcement_controller.legacy_router)


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
