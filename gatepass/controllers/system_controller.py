# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Ops endpoints.

/health answers as long as the process is up. /health/ready also needs the
database, and reports the push provider the dispatcher was built with.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from gatepass.core.config import settings
from gatepass.core.dependencies import get_dispatcher, get_visitor_repo
from gatepass.core.errors import PersistenceError

router = APIRouter(tags=["System"])


def _service_info() -> dict:
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}


@router.get("/health")
def liveness():
    return {"status": "ok", **_service_info()}


@router.get("/health/ready")
def readiness():
    info = {**_service_info(), "push_provider": get_dispatcher().provider.name}
    try:
        visitors = get_visitor_repo().count_all()
    except PersistenceError as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "database": "unavailable", "detail": str(exc), **info},
        )
    return {"status": "ok", "database": "connected", "visitors_in_db": visitors, **info}


@router.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
