# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Admin announcements — broadcast and per-role feed."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from gatepass.core.dependencies import get_announcement_service
from gatepass.core.errors import ValidationError
from gatepass.schemas import AnnouncementCreate, AnnouncementCreated, AnnouncementOut
from gatepass.services.announcement_service import AnnouncementService

router = APIRouter(prefix="/api/v1", tags=["Announcements"])
legacy_router = APIRouter(tags=["Legacy"], deprecated=True)


@router.post("/announcements", response_model=AnnouncementCreated)
@legacy_router.post("/admin/announce", response_model=AnnouncementCreated)
def create_announcement(body: AnnouncementCreate,
                        service: AnnouncementService = Depends(get_announcement_service)):
    try:
        announcement, count, token_count = service.create_announcement(
            body.title, body.message, body.target,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return AnnouncementCreated(
        message="Announcement Sent!",
        announcement=AnnouncementOut(**announcement),
        count=count,
        token_count=token_count,
    )


@router.get("/announcements/{role}", response_model=List[AnnouncementOut])
@legacy_router.get("/announcements/{role}", response_model=List[AnnouncementOut])
def list_announcements(role: str,
                       service: AnnouncementService = Depends(get_announcement_service)):
    return [AnnouncementOut(**a) for a in service.list_announcements(role)]
