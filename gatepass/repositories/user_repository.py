# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Resident directory access — read-only except for push tokens.
User records are owned by the account service; only lookups and token
patches happen here.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import text

from gatepass.core.logging import get_logger
from gatepass.repositories.base import BaseRepository

logger = get_logger(__name__)

AUDIENCE_FILTERS = {
    "all": "",
    "resident": "WHERE role = 'resident'",
    "guard": "WHERE role = 'guard'",
}


def _recipient(row) -> Dict[str, Any]:
    return {"id": str(row["id"]), "push_token": row["push_token"]}


class UserRepository(BaseRepository):
    """Handles all direct database operations against the users table."""

    def find_residents_by_flat(self, flat: str) -> List[Dict[str, Any]]:
        """Every resident account bound to the flat; co-residents all count."""
        with self._guard("resident lookup"):
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text("""
                        SELECT id, push_token FROM users
                        WHERE flat_number = :flat AND role = 'resident'
                    """),
                    {"flat": flat},
                ).mappings().all()
        return [_recipient(r) for r in rows]

    def find_users_by_audience(self, target: str) -> List[Dict[str, Any]]:
        """Resolve an announcement target to recipients. Unknown targets raise KeyError."""
        where = AUDIENCE_FILTERS[target]
        with self._guard("audience lookup"):
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(f"SELECT id, push_token FROM users {where}")
                ).mappings().all()
        return [_recipient(r) for r in rows]

    def find_users_by_flat(self, flat: str) -> List[Dict[str, Any]]:
        with self._guard("flat membership lookup"):
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text("""
                        SELECT id, name, role FROM users
                        WHERE flat_number = :flat
                        ORDER BY name
                    """),
                    {"flat": flat},
                ).mappings().all()
        return [{"id": str(r["id"]), "name": r["name"], "role": r["role"]} for r in rows]

    def find_resident_contact(self, flat: str) -> Optional[Dict[str, Any]]:
        with self._guard("resident contact lookup"):
            with self._engine.connect() as conn:
                row = conn.execute(
                    text("""
                        SELECT phone, name FROM users
                        WHERE flat_number = :flat AND role = 'resident'
                        ORDER BY name
                        LIMIT 1
                    """),
                    {"flat": flat},
                ).mappings().first()
        return {"phone": row["phone"], "name": row["name"]} if row else None

    def set_push_token(self, user_id: str, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """Store or clear (token=None) the device handle. Returns None for unknown users."""
        with self._guard("push token update"):
            with self._engine.begin() as conn:
                row = conn.execute(
                    text("""
                        UPDATE users SET push_token = :token
                        WHERE id = :id
                        RETURNING id, name, push_token
                    """),
                    {"id": user_id, "token": token},
                ).mappings().first()
        if not row:
            return None
        return {"id": str(row["id"]), "name": row["name"], "push_token": row["push_token"]}

    def clear_push_token_value(self, token: str) -> int:
        """Drop a device handle the provider reports as no longer registered."""
        with self._guard("stale token cleanup"):
            with self._engine.begin() as conn:
                result = conn.execute(
                    text("UPDATE users SET push_token = NULL WHERE push_token = :token"),
                    {"token": token},
                )
        return result.rowcount or 0
