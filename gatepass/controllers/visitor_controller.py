# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Visitor intake, retargeting, decisions and listings."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from gatepass.core.dependencies import get_visitor_service
from gatepass.core.errors import NotFoundError, ValidationError
from gatepass.schemas import (
    VisitorCreate, VisitorCreated, VisitorOut, VisitorRetarget,
    VisitorStatusUpdate, VisitorUpdated,
)
from gatepass.services.visitor_service import VisitorService

router = APIRouter(prefix="/api/v1", tags=["Visitors"])
legacy_router = APIRouter(tags=["Legacy"], deprecated=True)


@router.post("/visitors", status_code=201, response_model=VisitorCreated)
@legacy_router.post("/visitor-request", status_code=201, response_model=VisitorCreated)
def create_visitor(body: VisitorCreate,
                   service: VisitorService = Depends(get_visitor_service)):
    try:
        visitor, notified = service.create_visitor(
            name=body.name, purpose=body.purpose, target_flat=body.target_flat,
            mobile=body.mobile, photo=body.photo,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    message = ("Visitor Logged & Residents Notified" if notified
               else "Visitor Logged (No Resident Found)")
    return VisitorCreated(message=message, data=VisitorOut(**visitor), notified=notified)


@router.put("/visitors/target", response_model=VisitorUpdated)
@legacy_router.put("/update-visitor-target", response_model=VisitorUpdated)
def retarget_visitor(body: VisitorRetarget,
                     service: VisitorService = Depends(get_visitor_service)):
    try:
        visitor = service.retarget_visitor(body.id, body.target_flat, body.purpose)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Visitor not found")
    return VisitorUpdated(message="Destination updated", data=VisitorOut(**visitor))


@router.put("/visitors/status", response_model=VisitorUpdated)
@legacy_router.put("/visitor-response", response_model=VisitorUpdated)
def update_visitor_status(body: VisitorStatusUpdate,
                          service: VisitorService = Depends(get_visitor_service)):
    try:
        visitor = service.update_status(body.id, body.status)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Visitor not found")
    return VisitorUpdated(message="Status Updated", data=VisitorOut(**visitor))


@router.get("/visitors", response_model=List[VisitorOut])
@legacy_router.get("/all-visitors", response_model=List[VisitorOut])
def list_visitors(service: VisitorService = Depends(get_visitor_service)):
    return [VisitorOut(**v) for v in service.list_all()]


@router.get("/visitors/flat/{flat}", response_model=List[VisitorOut])
@legacy_router.get("/visitors/{flat}", response_model=List[VisitorOut])
def list_visitors_for_flat(flat: str,
                           service: VisitorService = Depends(get_visitor_service)):
    return [VisitorOut(**v) for v in service.list_by_flat(flat)]
