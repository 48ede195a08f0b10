# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Push-token registration and flat lookups against the resident directory."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from gatepass.core.dependencies import get_directory_service
from gatepass.core.errors import NotFoundError, ValidationError
from gatepass.schemas import (
    FlatMember, LogoutRequest, MessageOut, PushTokenUpdate, ResidentContact,
)
from gatepass.services.directory_service import DirectoryService

router = APIRouter(prefix="/api/v1", tags=["Directory"])
legacy_router = APIRouter(tags=["Legacy"], deprecated=True)


@router.put("/users/push-token", response_model=MessageOut)
@legacy_router.put("/update-push-token", response_model=MessageOut)
@legacy_router.post("/update-token", response_model=MessageOut)
def update_push_token(body: PushTokenUpdate,
                      service: DirectoryService = Depends(get_directory_service)):
    try:
        service.register_push_token(body.user_id, body.token)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return MessageOut(message="Token updated")


@router.post("/users/logout", response_model=MessageOut)
@legacy_router.post("/logout", response_model=MessageOut)
def logout(body: LogoutRequest,
           service: DirectoryService = Depends(get_directory_service)):
    try:
        service.clear_push_token(body.user_id)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return MessageOut(message="Logged out and token cleared")


@router.get("/flats/{flat}/members", response_model=List[FlatMember])
@legacy_router.get("/users-by-flat/{flat}", response_model=List[FlatMember])
def flat_members(flat: str,
                 service: DirectoryService = Depends(get_directory_service)):
    return [FlatMember(**m) for m in service.flat_members(flat)]


@router.get("/flats/{flat}/contact", response_model=ResidentContact)
def resident_contact(flat: str,
                     service: DirectoryService = Depends(get_directory_service)):
    try:
        return ResidentContact(**service.resident_contact(flat))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Resident not found")
