# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Business logic for the resident directory surface: tokens and flat lookups."""
from typing import Any, Dict, List, Optional

from gatepass.core.errors import NotFoundError, ValidationError
from gatepass.core.logging import get_logger
from gatepass.repositories.user_repository import UserRepository
from gatepass.utils.validators import blank, is_uuid

logger = get_logger(__name__)


class DirectoryService:
    def __init__(self, user_repo: UserRepository):
        self._users = user_repo

    def register_push_token(self, user_id: str, token: Optional[str]) -> Dict[str, Any]:
        """Store a device handle; an empty or null token clears it."""
        if blank(user_id):
            raise ValidationError("userId is required")
        token = (token or "").strip() or None
        user = self._users.set_push_token(user_id, token) if is_uuid(user_id) else None
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        if token:
            logger.info("Push token registered", extra={"user_id": user_id})
        else:
            logger.info("Push token cleared", extra={"user_id": user_id})
        return user

    def clear_push_token(self, user_id: str) -> Dict[str, Any]:
        return self.register_push_token(user_id, None)

    def forget_token(self, token: str) -> int:
        cleared = self._users.clear_push_token_value(token)
        if cleared:
            logger.info("Removed stale push token from %d account(s)", cleared)
        return cleared

    def flat_members(self, flat: str) -> List[Dict[str, Any]]:
        return self._users.find_users_by_flat(flat)

    def resident_contact(self, flat: str) -> Dict[str, Any]:
        contact = self._users.find_resident_contact(flat)
        if not contact:
            raise NotFoundError(f"No resident registered at flat {flat}")
        return contact
