# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

from gatepass.core.config import settings
from gatepass.core.database import engine
from gatepass.repositories.announcement_repository import AnnouncementRepository
from gatepass.repositories.user_repository import UserRepository
from gatepass.repositories.visitor_repository import VisitorRepository
from gatepass.services.announcement_service import AnnouncementService
from gatepass.services.directory_service import DirectoryService
from gatepass.services.notification_dispatcher import NotificationDispatcher
from gatepass.services.push_providers import build_provider
from gatepass.services.visitor_service import VisitorService

# ── Singleton repository instances (one shared engine) ──
_visitor_repo = VisitorRepository(engine)
_user_repo = UserRepository(engine)
_announcement_repo = AnnouncementRepository(engine)

# ── Service instances (with injected dependencies) ──
_directory_service = DirectoryService(_user_repo)
_dispatcher = NotificationDispatcher(
    build_provider(settings.PUSH_PROVIDER),
    max_workers=settings.PUSH_WORKERS,
    on_invalid_token=_directory_service.forget_token,
)
_visitor_service = VisitorService(_visitor_repo, _user_repo, _dispatcher)
_announcement_service = AnnouncementService(_announcement_repo, _user_repo, _dispatcher)


# ── FastAPI dependency functions ──
def get_visitor_service() -> VisitorService:
    return _visitor_service


def get_directory_service() -> DirectoryService:
    return _directory_service


def get_announcement_service() -> AnnouncementService:
    return _announcement_service


def get_dispatcher() -> NotificationDispatcher:
    return _dispatcher


def get_visitor_repo() -> VisitorRepository:
    return _visitor_repo
