# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package."""
from gatepass.repositories.announcement_repository import AnnouncementRepository
from gatepass.repositories.user_repository import UserRepository
from gatepass.repositories.visitor_repository import VisitorRepository

__all__ = ["AnnouncementRepository", "UserRepository", "VisitorRepository"]
