# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for visitors."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text

from gatepass.core.logging import get_logger
from gatepass.repositories.base import BaseRepository

logger = get_logger(__name__)

VISITOR_COLS = (
    "id, name, purpose, target_flat, mobile, photo, status, entry_time, approval_time"
)


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "name": row["name"],
        "purpose": row["purpose"],
        "target_flat": row["target_flat"],
        "mobile": row["mobile"],
        "photo": row["photo"] or "",
        "status": row["status"],
        "entry_time": row["entry_time"],
        "approval_time": row["approval_time"],
    }


class VisitorRepository(BaseRepository):

    # ── Write ──────────────────────────────────────────────────────────

    def create_visitor(self, visitor: Dict[str, Any]) -> Dict[str, Any]:
        with self._guard("visitor insert"):
            with self._engine.begin() as conn:
                conn.execute(
                    text("""
                        INSERT INTO visitors
                            (id, name, purpose, target_flat, mobile, photo, status, entry_time, approval_time)
                        VALUES
                            (:id, :name, :purpose, :target_flat, :mobile, :photo, :status, :entry_time, :approval_time)
                    """),
                    visitor,
                )
        return dict(visitor)

    def update_target(self, visitor_id: str, target_flat: str,
                      purpose: Optional[str]) -> Optional[Dict[str, Any]]:
        with self._guard("visitor retarget"):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text(f"""
                        UPDATE visitors
                        SET target_flat = :target_flat, purpose = :purpose
                        WHERE id = :id
                        RETURNING {VISITOR_COLS}
                    """),
                    {"id": visitor_id, "target_flat": target_flat, "purpose": purpose},
                ).mappings().first()
        return _row_to_dict(row) if row else None

    def update_status(self, visitor_id: str, status: str,
                      decided_at: datetime) -> Optional[Dict[str, Any]]:
        # GREATEST keeps approval_time >= entry_time under clock skew between app hosts
        with self._guard("visitor status update"):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text(f"""
                        UPDATE visitors
                        SET status = :status,
                            approval_time = GREATEST(CAST(:decided_at AS TIMESTAMPTZ), entry_time)
                        WHERE id = :id
                        RETURNING {VISITOR_COLS}
                    """),
                    {"id": visitor_id, "status": status, "decided_at": decided_at},
                ).mappings().first()
        return _row_to_dict(row) if row else None

    # ── Read ───────────────────────────────────────────────────────────

    def get_visitor(self, visitor_id: str) -> Optional[Dict[str, Any]]:
        with self._guard("visitor lookup"):
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(f"SELECT {VISITOR_COLS} FROM visitors WHERE id = :id"),
                    {"id": visitor_id},
                ).mappings().first()
        return _row_to_dict(row) if row else None

    def list_visitors(self, target_flat: Optional[str] = None) -> List[Dict[str, Any]]:
        where = "WHERE target_flat = :target_flat" if target_flat is not None else ""
        with self._guard("visitor listing"):
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(f"""
                        SELECT {VISITOR_COLS} FROM visitors {where}
                        ORDER BY entry_time DESC, id
                    """),
                    {"target_flat": target_flat},
                ).mappings().all()
        return [_row_to_dict(r) for r in rows]

    def count_all(self) -> int:
        with self._guard("visitor count"):
            with self._engine.connect() as conn:
                return conn.execute(text("SELECT COUNT(*) FROM visitors")).scalar() or 0
