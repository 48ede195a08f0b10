# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Business logic for admin announcements."""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from gatepass.core.errors import PersistenceError, ValidationError
from gatepass.core.logging import get_logger
from gatepass.metrics import ANNOUNCEMENTS_CREATED
from gatepass.repositories.announcement_repository import AnnouncementRepository
from gatepass.repositories.user_repository import UserRepository
from gatepass.schemas import normalise_target
from gatepass.services.notification_dispatcher import NotificationDispatcher
from gatepass.utils.validators import blank

logger = get_logger(__name__)


class AnnouncementService:
    def __init__(self, repo: AnnouncementRepository, user_repo: UserRepository,
                 dispatcher: NotificationDispatcher):
        self._repo = repo
        self._users = user_repo
        self._dispatcher = dispatcher

    def create_announcement(self, title: str, message: str,
                            target: str = "all") -> Tuple[Dict[str, Any], int, int]:
        """Persist, then blast to the audience.

        Returns (announcement, audience_size, token_count). audience_size counts
        every matched user, whether or not a device is registered for them.
        """
        if blank(title) or blank(message):
            raise ValidationError("title and message are required")
        target = normalise_target(target)

        announcement = self._repo.create_announcement({
            "id": str(uuid.uuid4()),
            "title": title.strip(),
            "message": message.strip(),
            "target": target,
            "created_at": datetime.now(timezone.utc),
        })
        ANNOUNCEMENTS_CREATED.labels(target=target).inc()

        try:
            audience = self._users.find_users_by_audience(target)
        except PersistenceError as exc:
            logger.error("Audience lookup for announcement %s failed, saved without broadcast: %s",
                         announcement["id"], exc)
            return announcement, 0, 0
        tokens = [u["push_token"] for u in audience if u["push_token"]]
        if tokens:
            try:
                self._dispatcher.dispatch(tokens, announcement["title"], announcement["message"], {
                    "type": "announcement", "announcementId": announcement["id"], "target": target,
                })
            except RuntimeError as exc:
                logger.error("Could not schedule announcement %s: %s", announcement["id"], exc)

        logger.info("Announcement %s sent target=%s audience=%d tokens=%d",
                    announcement["id"], target, len(audience), len(tokens))
        return announcement, len(audience), len(tokens)

    def list_announcements(self, role: str) -> List[Dict[str, Any]]:
        return self._repo.list_for_role(role.strip().lower())
