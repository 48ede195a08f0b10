# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Business logic for the visitor lifecycle.

    Pending ─► Approved
    Pending ─► Rejected
    Approved ⇄ Rejected   (re-deciding is allowed and re-stamps approval_time)

Every mutation is committed before residents are notified; notification is
best-effort and never changes the outcome of the request.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from gatepass.core.errors import NotFoundError, PersistenceError, ValidationError
from gatepass.core.logging import get_logger
from gatepass.metrics import VISITOR_DECISION_OVERRIDES, VISITOR_DECISIONS, VISITORS_CREATED
from gatepass.repositories.user_repository import UserRepository
from gatepass.repositories.visitor_repository import VisitorRepository
from gatepass.schemas import DECISION_STATUSES, normalise_decision
from gatepass.services.notification_dispatcher import NotificationDispatcher
from gatepass.utils.validators import blank, is_uuid

logger = get_logger(__name__)

VISITOR_ALERT_TITLE = "Visitor Alert"


class VisitorService:
    def __init__(self, repo: VisitorRepository, user_repo: UserRepository,
                 dispatcher: NotificationDispatcher):
        self._repo = repo
        self._users = user_repo
        self._dispatcher = dispatcher

    def create_visitor(self, name: Optional[str], purpose: Optional[str],
                       target_flat: str, mobile: str,
                       photo: Optional[str] = None) -> Tuple[Dict[str, Any], int]:
        """Log an arrival and alert the flat. Returns (visitor, residents_notified)."""
        if blank(mobile):
            raise ValidationError("mobile is required")
        if blank(target_flat):
            raise ValidationError("targetFlat is required")

        visitor = {
            "id": str(uuid.uuid4()),
            "name": name,
            "purpose": purpose,
            "target_flat": target_flat.strip(),
            "mobile": mobile.strip(),
            "photo": photo or "",
            "status": "Pending",
            "entry_time": datetime.now(timezone.utc),
            "approval_time": None,
        }
        stored = self._repo.create_visitor(visitor)
        VISITORS_CREATED.inc()
        logger.info("Visitor logged name=%s", stored["name"],
                    extra={"visitor_id": stored["id"], "flat": stored["target_flat"]})

        notified = self._notify_flat(stored, "visitor_request")
        return stored, notified

    def retarget_visitor(self, visitor_id: str, new_flat: str,
                         new_purpose: Optional[str]) -> Dict[str, Any]:
        """Point a visitor at a different flat and alert that flat's residents."""
        if blank(visitor_id) or blank(new_flat):
            raise ValidationError("Missing visitor ID or new target")
        if not is_uuid(visitor_id):
            raise NotFoundError(f"Visitor {visitor_id} not found")

        updated = self._repo.update_target(visitor_id, new_flat.strip(), new_purpose)
        if not updated:
            raise NotFoundError(f"Visitor {visitor_id} not found")
        logger.info("Visitor retargeted purpose=%s", updated["purpose"],
                    extra={"visitor_id": visitor_id, "flat": updated["target_flat"]})

        self._notify_flat(updated, "visitor_retarget")
        return updated

    def update_status(self, visitor_id: str, status: str) -> Dict[str, Any]:
        """Record a resident's decision and stamp approval_time."""
        decision = normalise_decision(status)
        if decision is None:
            raise ValidationError(f"status must be one of {DECISION_STATUSES}")
        if blank(visitor_id):
            raise ValidationError("Missing visitor ID")
        if not is_uuid(visitor_id):
            raise NotFoundError(f"Visitor {visitor_id} not found")

        current = self.get_visitor(visitor_id)
        if not current:
            raise NotFoundError(f"Visitor {visitor_id} not found")
        if current["status"] != "Pending":
            # Decisions are not terminal: the latest call wins
            VISITOR_DECISION_OVERRIDES.inc()
            logger.warning("Visitor %s already %s — overwriting with %s",
                           visitor_id, current["status"], decision)

        updated = self._repo.update_status(visitor_id, decision, datetime.now(timezone.utc))
        if not updated:
            raise NotFoundError(f"Visitor {visitor_id} not found")
        VISITOR_DECISIONS.labels(status=decision).inc()
        logger.info("Visitor marked %s at %s", decision, updated["approval_time"],
                    extra={"visitor_id": visitor_id, "flat": updated["target_flat"]})
        return updated

    def get_visitor(self, visitor_id: str) -> Optional[Dict[str, Any]]:
        if not is_uuid(visitor_id):
            return None
        return self._repo.get_visitor(visitor_id)

    def list_all(self) -> List[Dict[str, Any]]:
        return self._repo.list_visitors()

    def list_by_flat(self, flat: str) -> List[Dict[str, Any]]:
        return self._repo.list_visitors(target_flat=flat)

    # ── Fan-out ────────────────────────────────────────────────────────

    def _notify_flat(self, visitor: Dict[str, Any], kind: str) -> int:
        """Alert every resident of the visitor's flat. Returns how many were resolved."""
        flat = visitor["target_flat"]
        try:
            residents = self._users.find_residents_by_flat(flat)
        except PersistenceError as exc:
            logger.error("Resident lookup for flat %s failed, visitor %s saved without alert: %s",
                         flat, visitor["id"], exc)
            return 0
        if not residents:
            logger.info("No resident registered at flat %s for visitor %s", flat, visitor["id"])
            return 0

        body = f"New Visitor: {visitor['name'] or 'Someone'} is waiting to visit you ({flat})."
        data = {"type": kind, "visitorId": visitor["id"], "flatNumber": flat}
        try:
            self._dispatcher.dispatch([r["push_token"] for r in residents],
                                      VISITOR_ALERT_TITLE, body, data)
        except RuntimeError as exc:
            logger.error("Could not schedule visitor alert for %s: %s", visitor["id"], exc)
        return len(residents)
