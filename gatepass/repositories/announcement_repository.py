# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for announcements."""
from typing import Any, Dict, List

from sqlalchemy import text

from gatepass.core.logging import get_logger
from gatepass.repositories.base import BaseRepository

logger = get_logger(__name__)


class AnnouncementRepository(BaseRepository):

    def create_announcement(self, announcement: Dict[str, Any]) -> Dict[str, Any]:
        with self._guard("announcement insert"):
            with self._engine.begin() as conn:
                conn.execute(
                    text("""
                        INSERT INTO announcements (id, title, message, target, created_at)
                        VALUES (:id, :title, :message, :target, :created_at)
                    """),
                    announcement,
                )
        return dict(announcement)

    def list_for_role(self, role: str) -> List[Dict[str, Any]]:
        with self._guard("announcement listing"):
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text("""
                        SELECT id, title, message, target, created_at
                        FROM announcements
                        WHERE target = :role OR target = 'all'
                        ORDER BY created_at DESC
                    """),
                    {"role": role},
                ).mappings().all()
        return [
            {
                "id": str(r["id"]),
                "title": r["title"],
                "message": r["message"],
                "target": r["target"],
                "created_at": r["created_at"],
            }
            for r in rows
        ]
