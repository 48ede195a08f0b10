# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pydantic request/response schemas. Wire format is camelCase."""
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DECISION_STATUSES = ("Approved", "Rejected")
ANNOUNCEMENT_TARGETS = ("all", "resident", "guard")


def normalise_decision(value: Optional[str]) -> Optional[str]:
    """Map 'approved' / ' REJECTED ' onto the canonical status, or None."""
    if value is None:
        return None
    value = value.strip().capitalize()
    return value if value in DECISION_STATUSES else None


def normalise_target(value: Optional[str]) -> str:
    """Unrecognised announcement targets fall back to 'all'."""
    value = (value or "").strip().lower()
    return value if value in ANNOUNCEMENT_TARGETS else "all"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


# ── Visitors ──────────────────────────────────────────────────────────────
class VisitorCreate(CamelModel):
    name: Optional[str] = Field(default=None, max_length=200)
    purpose: Optional[str] = Field(default=None, max_length=500)
    target_flat: str = Field(
        ..., min_length=1, max_length=50,
        validation_alias=AliasChoices("targetFlat", "flatNumber", "target_flat"),
    )
    mobile: str = Field(..., min_length=1, max_length=30)
    photo: Optional[str] = None

    @field_validator("target_flat", "mobile")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)


class VisitorRetarget(CamelModel):
    id: str = Field(..., min_length=1)
    target_flat: str = Field(
        ..., min_length=1, max_length=50,
        validation_alias=AliasChoices("targetFlat", "flatNumber", "target_flat"),
    )
    purpose: Optional[str] = Field(default=None, max_length=500)

    @field_validator("id", "target_flat")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)


class VisitorStatusUpdate(CamelModel):
    id: str = Field(..., min_length=1)
    status: str

    @field_validator("status")
    @classmethod
    def normalise_status(cls, v: str) -> str:
        status = normalise_decision(v)
        if status is None:
            raise ValueError(f"status must be one of {DECISION_STATUSES}")
        return status


class VisitorOut(CamelModel):
    id: str
    name: Optional[str] = None
    purpose: Optional[str] = None
    target_flat: str
    mobile: str
    photo: str = ""
    status: str
    entry_time: datetime
    approval_time: Optional[datetime] = None


class VisitorCreated(CamelModel):
    message: str
    data: VisitorOut
    notified: int


class VisitorUpdated(CamelModel):
    success: bool = True
    message: str
    data: VisitorOut


# ── Directory ─────────────────────────────────────────────────────────────
class PushTokenUpdate(CamelModel):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("userId", "user_id"))
    token: Optional[str] = Field(
        default=None, max_length=500,
        validation_alias=AliasChoices("token", "pushToken"),
    )


class LogoutRequest(CamelModel):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("userId", "user_id"))


class FlatMember(CamelModel):
    id: str
    name: Optional[str] = None
    role: str


class ResidentContact(CamelModel):
    phone: str
    name: Optional[str] = None


class MessageOut(CamelModel):
    message: str


# ── Announcements ─────────────────────────────────────────────────────────
class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    target: str = "all"

    @field_validator("target", mode="before")
    @classmethod
    def default_target(cls, v: Optional[str]) -> str:
        return normalise_target(v)


class AnnouncementOut(CamelModel):
    id: str
    title: str
    message: str
    target: str
    created_at: datetime


class AnnouncementCreated(CamelModel):
    message: str
    announcement: AnnouncementOut
    count: int
    token_count: int


class ErrorResponse(BaseModel):
    error: str
    detail: Any = None
    request_id: Optional[str] = None

