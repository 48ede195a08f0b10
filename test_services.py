# type: ignore
"""
Gatepass Service — Business Logic Tests
=======================================
Services wired to in-memory repositories and a recording dispatcher, so
lifecycle rules are checked without a database or HTTP layer.

Run:  pytest test_services.py -v
"""
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from gatepass.core.errors import NotFoundError, PersistenceError, ValidationError
from gatepass.services.announcement_service import AnnouncementService
from gatepass.services.directory_service import DirectoryService
from gatepass.services.visitor_service import VisitorService

TOKEN_A = "ExponentPushToken[aaaaaaaaaaaaaaaaaaaaaa]"
TOKEN_B = "ExponentPushToken[bbbbbbbbbbbbbbbbbbbbbb]"
TOKEN_C = "ExpoPushToken[cccccccccccccccccccccc]"


# ── In-memory doubles ────────────────────────────────────────────────────
class InMemoryVisitorRepo:
    def __init__(self):
        self.rows = {}

    def create_visitor(self, visitor):
        self.rows[visitor["id"]] = dict(visitor)
        return dict(visitor)

    def update_target(self, visitor_id, target_flat, purpose):
        row = self.rows.get(visitor_id)
        if row is None:
            return None
        row.update(target_flat=target_flat, purpose=purpose)
        return dict(row)

    def update_status(self, visitor_id, status, decided_at):
        row = self.rows.get(visitor_id)
        if row is None:
            return None
        row.update(status=status, approval_time=max(decided_at, row["entry_time"]))
        return dict(row)

    def get_visitor(self, visitor_id):
        row = self.rows.get(visitor_id)
        return dict(row) if row else None

    def list_visitors(self, target_flat=None):
        rows = [r for r in self.rows.values()
                if target_flat is None or r["target_flat"] == target_flat]
        return [dict(r) for r in sorted(rows, key=lambda r: r["entry_time"], reverse=True)]


class InMemoryUserRepo:
    def __init__(self, users=None):
        self.users = users or []

    def _recipients(self, users):
        return [{"id": u["id"], "push_token": u.get("push_token")} for u in users]

    def find_residents_by_flat(self, flat):
        return self._recipients(
            u for u in self.users if u["flat_number"] == flat and u["role"] == "resident"
        )

    def find_users_by_audience(self, target):
        if target == "all":
            return self._recipients(self.users)
        return self._recipients(u for u in self.users if u["role"] == target)

    def find_users_by_flat(self, flat):
        return [{"id": u["id"], "name": u["name"], "role": u["role"]}
                for u in self.users if u["flat_number"] == flat]

    def find_resident_contact(self, flat):
        for u in self.users:
            if u["flat_number"] == flat and u["role"] == "resident":
                return {"phone": u["phone"], "name": u["name"]}
        return None

    def set_push_token(self, user_id, token):
        for u in self.users:
            if u["id"] == user_id:
                u["push_token"] = token
                return {"id": u["id"], "name": u["name"], "push_token": token}
        return None

    def clear_push_token_value(self, token):
        cleared = 0
        for u in self.users:
            if u.get("push_token") == token:
                u["push_token"] = None
                cleared += 1
        return cleared


class FailingUserRepo(InMemoryUserRepo):
    def find_residents_by_flat(self, flat):
        raise PersistenceError("resident lookup failed")

    def find_users_by_audience(self, target):
        raise PersistenceError("audience lookup failed")


class InMemoryAnnouncementRepo:
    def __init__(self):
        self.rows = []

    def create_announcement(self, announcement):
        self.rows.append(dict(announcement))
        return dict(announcement)

    def list_for_role(self, role):
        rows = [r for r in self.rows if r["target"] in (role, "all")]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)


class RecordingDispatcher:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def dispatch(self, tokens, title, body, data=None):
        if self.fail:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.calls.append({"tokens": list(tokens), "title": title, "body": body, "data": data})


def _user(role="resident", flat="12B", token=None, name="Riya", phone=None):
    return {
        "id": str(uuid.uuid4()),
        "name": name,
        "phone": phone or f"555-{uuid.uuid4().int % 10000:04d}",
        "role": role,
        "flat_number": flat,
        "push_token": token,
    }


@pytest.fixture
def users():
    return [
        _user(token=TOKEN_A, name="Riya"),
        _user(token=TOKEN_B, name="Sam"),
        _user(flat="12C", token=TOKEN_C, name="Noor"),
        _user(role="guard", flat="12B", token="ExponentPushToken[guard]", name="Guard"),
        _user(role="admin", flat=None, token=None, name="Admin"),
    ]


@pytest.fixture
def visitor_env(users):
    repo = InMemoryVisitorRepo()
    dispatcher = RecordingDispatcher()
    service = VisitorService(repo, InMemoryUserRepo(users), dispatcher)
    return service, repo, dispatcher


# ═══════════════════════════════════════════════════════════════════════════
# VISITOR INTAKE
# ═══════════════════════════════════════════════════════════════════════════
class TestCreateVisitor:
    def test_new_visitor_is_pending(self, visitor_env):
        service, repo, _ = visitor_env
        before = datetime.now(timezone.utc)
        visitor, _ = service.create_visitor("Alex", "delivery", "12B", "555-0100")
        assert visitor["status"] == "Pending"
        assert visitor["approval_time"] is None
        assert visitor["entry_time"] >= before
        assert visitor["photo"] == ""
        assert repo.rows[visitor["id"]]["status"] == "Pending"

    def test_ids_are_unique(self, visitor_env):
        service, _, _ = visitor_env
        ids = {service.create_visitor(None, None, "12B", "555")[0]["id"] for _ in range(5)}
        assert len(ids) == 5

    def test_only_residents_of_target_flat_are_alerted(self, visitor_env):
        service, _, dispatcher = visitor_env
        visitor, notified = service.create_visitor("Alex", "delivery", "12B", "555-0100")
        assert notified == 2
        assert len(dispatcher.calls) == 1
        call = dispatcher.calls[0]
        assert sorted(call["tokens"]) == sorted([TOKEN_A, TOKEN_B])
        assert call["title"] == "Visitor Alert"
        assert call["body"] == "New Visitor: Alex is waiting to visit you (12B)."
        assert call["data"] == {"type": "visitor_request", "visitorId": visitor["id"], "flatNumber": "12B"}

    def test_unnamed_visitor_body(self, visitor_env):
        service, _, dispatcher = visitor_env
        service.create_visitor(None, None, "12C", "555-0100")
        assert dispatcher.calls[0]["body"] == "New Visitor: Someone is waiting to visit you (12C)."

    def test_no_resident_no_dispatch(self, visitor_env):
        service, repo, dispatcher = visitor_env
        visitor, notified = service.create_visitor("Alex", "delivery", "99Z", "555-0100")
        assert notified == 0
        assert dispatcher.calls == []
        assert visitor["id"] in repo.rows

    def test_tokenless_resident_still_counted(self):
        repo = InMemoryVisitorRepo()
        dispatcher = RecordingDispatcher()
        service = VisitorService(repo, InMemoryUserRepo([_user(token=None)]), dispatcher)
        _, notified = service.create_visitor("Alex", None, "12B", "555")
        assert notified == 1
        assert dispatcher.calls[0]["tokens"] == [None]

    @pytest.mark.parametrize("flat,mobile", [("", "555"), ("12B", ""), ("  ", "555"), ("12B", None)])
    def test_required_fields(self, visitor_env, flat, mobile):
        service, repo, dispatcher = visitor_env
        with pytest.raises(ValidationError):
            service.create_visitor("Alex", None, flat, mobile)
        assert repo.rows == {}
        assert dispatcher.calls == []

    def test_lookup_failure_keeps_visitor(self):
        repo = InMemoryVisitorRepo()
        dispatcher = RecordingDispatcher()
        service = VisitorService(repo, FailingUserRepo(), dispatcher)
        visitor, notified = service.create_visitor("Alex", None, "12B", "555")
        assert notified == 0
        assert visitor["id"] in repo.rows
        assert dispatcher.calls == []

    def test_dispatch_failure_keeps_visitor(self, users):
        repo = InMemoryVisitorRepo()
        service = VisitorService(repo, InMemoryUserRepo(users), RecordingDispatcher(fail=True))
        visitor, notified = service.create_visitor("Alex", None, "12B", "555")
        assert notified == 2
        assert visitor["id"] in repo.rows


# ═══════════════════════════════════════════════════════════════════════════
# RETARGET
# ═══════════════════════════════════════════════════════════════════════════
class TestRetargetVisitor:
    def test_only_flat_and_purpose_change(self, visitor_env):
        service, repo, _ = visitor_env
        visitor, _ = service.create_visitor("Alex", "delivery", "12B", "555-0100")
        decided = service.update_status(visitor["id"], "Approved")

        moved = service.retarget_visitor(visitor["id"], "12C", "courier")
        assert moved["target_flat"] == "12C"
        assert moved["purpose"] == "courier"
        for field in ("id", "name", "mobile", "photo", "status", "entry_time", "approval_time"):
            assert moved[field] == decided[field]

    def test_new_flat_is_alerted(self, visitor_env):
        service, _, dispatcher = visitor_env
        visitor, _ = service.create_visitor("Alex", "delivery", "12B", "555-0100")
        service.retarget_visitor(visitor["id"], "12C", None)
        last = dispatcher.calls[-1]
        assert last["tokens"] == [TOKEN_C]
        assert last["data"]["flatNumber"] == "12C"
        assert last["data"]["type"] == "visitor_retarget"

    def test_unknown_id(self, visitor_env):
        service, _, _ = visitor_env
        with pytest.raises(NotFoundError):
            service.retarget_visitor(str(uuid.uuid4()), "12C", None)

    def test_malformed_id(self, visitor_env):
        service, _, _ = visitor_env
        with pytest.raises(NotFoundError):
            service.retarget_visitor("not-a-uuid", "12C", None)

    @pytest.mark.parametrize("vid,flat", [("", "12C"), (str(uuid.uuid4()), ""), (None, "12C")])
    def test_missing_fields(self, visitor_env, vid, flat):
        service, _, _ = visitor_env
        with pytest.raises(ValidationError):
            service.retarget_visitor(vid, flat, None)


# ═══════════════════════════════════════════════════════════════════════════
# DECISIONS
# ═══════════════════════════════════════════════════════════════════════════
class TestUpdateStatus:
    def test_approve_stamps_time(self, visitor_env):
        service, _, dispatcher = visitor_env
        visitor, _ = service.create_visitor("Alex", None, "12B", "555")
        calls_before = len(dispatcher.calls)
        updated = service.update_status(visitor["id"], "Approved")
        assert updated["status"] == "Approved"
        assert updated["approval_time"] >= updated["entry_time"]
        assert len(dispatcher.calls) == calls_before

    def test_lowercase_status_accepted(self, visitor_env):
        service, _, _ = visitor_env
        visitor, _ = service.create_visitor("Alex", None, "12B", "555")
        assert service.update_status(visitor["id"], "rejected")["status"] == "Rejected"

    @pytest.mark.parametrize("status", ["Pending", "Maybe", "", None])
    def test_invalid_status_leaves_record(self, visitor_env, status):
        service, repo, _ = visitor_env
        visitor, _ = service.create_visitor("Alex", None, "12B", "555")
        with pytest.raises(ValidationError):
            service.update_status(visitor["id"], status)
        assert repo.rows[visitor["id"]]["status"] == "Pending"
        assert repo.rows[visitor["id"]]["approval_time"] is None

    def test_current_state_read_through_service_lookup(self, visitor_env):
        service, _, _ = visitor_env
        visitor, _ = service.create_visitor("Alex", None, "12B", "555")
        with patch.object(service, "get_visitor", wraps=service.get_visitor) as lookup:
            service.update_status(visitor["id"], "Approved")
        lookup.assert_called_once_with(visitor["id"])

    def test_unknown_id(self, visitor_env):
        service, _, _ = visitor_env
        with pytest.raises(NotFoundError):
            service.update_status(str(uuid.uuid4()), "Approved")

    def test_malformed_id(self, visitor_env):
        service, _, _ = visitor_env
        with pytest.raises(NotFoundError):
            service.update_status("12345", "Approved")

    def test_second_decision_overwrites_and_restamps(self, visitor_env):
        service, _, _ = visitor_env
        visitor, _ = service.create_visitor("Alex", None, "12B", "555")
        t1 = visitor["entry_time"] + timedelta(seconds=30)
        t2 = visitor["entry_time"] + timedelta(seconds=90)
        with patch("gatepass.services.visitor_service.datetime") as mock_dt:
            mock_dt.now.side_effect = [t1, t2]
            first = service.update_status(visitor["id"], "Approved")
            second = service.update_status(visitor["id"], "Rejected")
        assert first["approval_time"] == t1
        assert second["status"] == "Rejected"
        assert second["approval_time"] == t2

    def test_decision_clock_behind_entry_is_clamped(self, visitor_env):
        service, _, _ = visitor_env
        visitor, _ = service.create_visitor("Alex", None, "12B", "555")
        skewed = visitor["entry_time"] - timedelta(seconds=5)
        with patch("gatepass.services.visitor_service.datetime") as mock_dt:
            mock_dt.now.return_value = skewed
            updated = service.update_status(visitor["id"], "Approved")
        assert updated["approval_time"] == visitor["entry_time"]


# ═══════════════════════════════════════════════════════════════════════════
# LISTINGS
# ═══════════════════════════════════════════════════════════════════════════
class TestListings:
    @pytest.fixture
    def seeded(self, visitor_env):
        service, repo, _ = visitor_env
        base = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
        for i, flat in enumerate(["12B", "12C", "12B", "3A", "12B"]):
            vid = str(uuid.uuid4())
            repo.rows[vid] = {
                "id": vid, "name": f"v{i}", "purpose": None, "target_flat": flat,
                "mobile": "555", "photo": "", "status": "Pending",
                "entry_time": base + timedelta(minutes=i), "approval_time": None,
            }
        return service

    def test_list_all_newest_first(self, seeded):
        rows = seeded.list_all()
        assert len(rows) == 5
        times = [r["entry_time"] for r in rows]
        assert times == sorted(times, reverse=True)

    def test_by_flat_is_ordered_subset(self, seeded):
        everything = seeded.list_all()
        flat = seeded.list_by_flat("12B")
        assert [r["name"] for r in flat] == ["v4", "v2", "v0"]
        assert flat == [r for r in everything if r["target_flat"] == "12B"]

    def test_unknown_flat_empty(self, seeded):
        assert seeded.list_by_flat("nowhere") == []

    def test_get_visitor_malformed_id(self, seeded):
        assert seeded.get_visitor("nope") is None


# ═══════════════════════════════════════════════════════════════════════════
# DIRECTORY
# ═══════════════════════════════════════════════════════════════════════════
class TestDirectoryService:
    def test_register_token(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        user = service.register_push_token(users[0]["id"], " ExponentPushToken[new] ")
        assert user["push_token"] == "ExponentPushToken[new]"
        assert users[0]["push_token"] == "ExponentPushToken[new]"

    def test_empty_token_clears(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        service.register_push_token(users[0]["id"], "")
        assert users[0]["push_token"] is None

    def test_clear_push_token(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        service.clear_push_token(users[1]["id"])
        assert users[1]["push_token"] is None

    def test_unknown_user(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        with pytest.raises(NotFoundError):
            service.register_push_token(str(uuid.uuid4()), TOKEN_A)

    def test_malformed_user_id(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        with pytest.raises(NotFoundError):
            service.register_push_token("user-1", TOKEN_A)

    def test_blank_user_id(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        with pytest.raises(ValidationError):
            service.register_push_token("  ", TOKEN_A)

    def test_forget_token(self, users):
        users[2]["push_token"] = TOKEN_A
        service = DirectoryService(InMemoryUserRepo(users))
        assert service.forget_token(TOKEN_A) == 2
        assert all(u["push_token"] != TOKEN_A for u in users)

    def test_flat_members(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        names = {m["name"] for m in service.flat_members("12B")}
        assert names == {"Riya", "Sam", "Guard"}

    def test_resident_contact(self, users):
        service = DirectoryService(InMemoryUserRepo(users))
        assert service.resident_contact("12C")["name"] == "Noor"
        with pytest.raises(NotFoundError):
            service.resident_contact("99Z")


# ═══════════════════════════════════════════════════════════════════════════
# ANNOUNCEMENTS
# ═══════════════════════════════════════════════════════════════════════════
class TestAnnouncementService:
    @pytest.fixture
    def env(self, users):
        repo = InMemoryAnnouncementRepo()
        dispatcher = RecordingDispatcher()
        return AnnouncementService(repo, InMemoryUserRepo(users), dispatcher), repo, dispatcher

    def test_all_reaches_everyone(self, env):
        service, repo, dispatcher = env
        announcement, count, token_count = service.create_announcement("Lift", "Lift down today")
        assert announcement["target"] == "all"
        assert count == 5
        assert token_count == 4
        assert len(dispatcher.calls) == 1
        assert None not in dispatcher.calls[0]["tokens"]
        assert dispatcher.calls[0]["data"]["announcementId"] == announcement["id"]
        assert repo.rows[0]["id"] == announcement["id"]

    def test_resident_audience(self, env):
        service, _, dispatcher = env
        _, count, _ = service.create_announcement("Water", "No water", "resident")
        assert count == 3
        assert sorted(dispatcher.calls[0]["tokens"]) == sorted([TOKEN_A, TOKEN_B, TOKEN_C])

    def test_guard_audience(self, env):
        service, _, dispatcher = env
        _, count, _ = service.create_announcement("Shift", "Night shift swap", "guard")
        assert count == 1
        assert dispatcher.calls[0]["tokens"] == ["ExponentPushToken[guard]"]

    def test_unknown_target_becomes_all(self, env):
        service, _, _ = env
        announcement, count, _ = service.create_announcement("T", "M", "everyone")
        assert announcement["target"] == "all"
        assert count == 5

    def test_no_tokens_no_dispatch(self):
        dispatcher = RecordingDispatcher()
        service = AnnouncementService(
            InMemoryAnnouncementRepo(), InMemoryUserRepo([_user(role="guard")]), dispatcher,
        )
        _, count, token_count = service.create_announcement("T", "M", "guard")
        assert (count, token_count) == (1, 0)
        assert dispatcher.calls == []

    def test_dispatch_failure_keeps_announcement(self, users):
        repo = InMemoryAnnouncementRepo()
        service = AnnouncementService(repo, InMemoryUserRepo(users), RecordingDispatcher(fail=True))
        announcement, _, _ = service.create_announcement("T", "M")
        assert repo.rows[0]["id"] == announcement["id"]

    def test_audience_lookup_failure_keeps_announcement(self):
        repo = InMemoryAnnouncementRepo()
        dispatcher = RecordingDispatcher()
        service = AnnouncementService(repo, FailingUserRepo(), dispatcher)
        announcement, count, token_count = service.create_announcement("Lift", "Lift down")
        assert (count, token_count) == (0, 0)
        assert repo.rows[0]["id"] == announcement["id"]
        assert dispatcher.calls == []

    @pytest.mark.parametrize("title,message", [("", "M"), ("T", "  ")])
    def test_required_fields(self, env, title, message):
        service, repo, _ = env
        with pytest.raises(ValidationError):
            service.create_announcement(title, message)
        assert repo.rows == []

    def test_feed_for_role(self, env):
        service, repo, _ = env
        base = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
        for i, target in enumerate(["all", "guard", "resident", "all"]):
            repo.rows.append({"id": str(i), "title": f"a{i}", "message": "m",
                              "target": target, "created_at": base + timedelta(hours=i)})
        assert [a["title"] for a in service.list_announcements("Guard")] == ["a3", "a1", "a0"]
        assert [a["title"] for a in service.list_announcements("resident")] == ["a3", "a2", "a0"]
