"""
Service-level rules: check-in, self check-in, giving totals, community and team
membership, comment replies and media likes
"""

import uuid
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from services.attendance_service import AttendanceService
from services.base_service import ServiceResult, failure
from services.comments_service import CommentsService
from services.communities_service import CommunitiesService
from services.events_service import EventsService
from services.gallery_service import MediaService
from services.giving_service import GivingService
from services.teams_service import TeamsService

NOW = datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)
MEMBER_ID = str(uuid.uuid4())


def ok(*rows) -> ServiceResult:
    return ServiceResult(success=True, data=list(rows), count=len(rows))


def event_row(moment: datetime, **overrides):
    row = {
        "event_id": str(uuid.uuid4()),
        "name": "Evening Service",
        "date": moment.isoformat(),
        "end_date": None,
        "is_recurring": False,
        "recurring_type": None,
        "allow_self_attendance": True,
    }
    row.update(overrides)
    return row


@pytest.fixture
def activity():
    service = MagicMock()
    service.record = AsyncMock(return_value=ok())
    return service


@pytest.fixture
def members():
    service = MagicMock()
    service.get_by_id = AsyncMock(return_value=ok({"member_id": MEMBER_ID, "team_id": None}))
    service.update = AsyncMock(return_value=ok())
    service.add_to_array = AsyncMock(return_value=ok())
    service.remove_from_array = AsyncMock(return_value=ok())
    service.adjust_total_giving = AsyncMock(return_value=ok())
    return service


class TestCheckIn:

    @pytest.fixture
    def events(self):
        return EventsService()

    @pytest.fixture
    def attendance(self, events, activity):
        with patch("services.attendance_service.get_events_service", return_value=events), \
                patch("services.attendance_service.get_activity_service", return_value=activity):
            yield AttendanceService()

    def with_event(self, events, event):
        return patch.object(events, "get_by_id", new=AsyncMock(return_value=ok(event)))

    @pytest.mark.asyncio
    async def test_outside_window(self, attendance, events):
        event = event_row(NOW + timedelta(hours=3))
        with self.with_event(events, event), \
                patch.object(attendance, "create", new=AsyncMock()) as create:
            result = await attendance.check_in(MEMBER_ID, event["event_id"], now=NOW)

        assert result.error_type == "INVALID_REQUEST"
        assert result.error.startswith("Check-in is only available")
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dated_id_for_one_off_event_is_refused(self, attendance, events):
        conference = event_row(datetime(2026, 10, 10, 18, 0, tzinfo=timezone.utc), name="Conference")
        with self.with_event(events, conference), \
                patch.object(attendance, "create", new=AsyncMock()) as create:
            result = await attendance.check_in(MEMBER_ID, f"{conference['event_id']}_2026-10-19", now=NOW)

        assert result.error_type == "RESOURCE_NOT_FOUND"
        assert result.error == "Event not found"
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recurring_event_once_per_day(self, attendance, events):
        weekly = event_row(datetime(2026, 10, 5, 18, 0, tzinfo=timezone.utc),
                           is_recurring=True, recurring_type="weekly")
        existing = ok({"record_id": "r1"})
        with self.with_event(events, weekly), \
                patch.object(attendance, "find_for_day", new=AsyncMock(return_value=existing)) as find, \
                patch.object(attendance, "create", new=AsyncMock()) as create:
            result = await attendance.check_in(MEMBER_ID, f"{weekly['event_id']}_2026-10-19", now=NOW)

        assert result.error == "Already checked in to this event"
        member_id, event_id, occurrence = find.await_args.args
        assert event_id == weekly["event_id"]
        assert occurrence == datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_off_event_once_in_total(self, attendance, events):
        event = event_row(NOW - timedelta(minutes=30))
        with self.with_event(events, event), \
                patch.object(attendance, "read", new=AsyncMock(return_value=ok({"record_id": "r1"}))) as read, \
                patch.object(attendance, "create", new=AsyncMock()) as create:
            result = await attendance.check_in(MEMBER_ID, event["event_id"], now=NOW)

        assert result.error == "Already checked in to this event"
        assert read.await_args.kwargs["filters"] == {"member_id": MEMBER_ID, "event_id": event["event_id"]}
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_occurrence_check_in_records_base_event(self, attendance, events, activity):
        weekly = event_row(datetime(2026, 10, 5, 18, 0, tzinfo=timezone.utc),
                           is_recurring=True, recurring_type="weekly")
        created = ok({"record_id": "r1", "status": "present"})
        with self.with_event(events, weekly), \
                patch.object(attendance, "find_for_day", new=AsyncMock(return_value=ok())), \
                patch.object(attendance, "create", new=AsyncMock(return_value=created)) as create:
            result = await attendance.check_in(MEMBER_ID, f"{weekly['event_id']}_2026-10-19", now=NOW)

        assert result.success
        assert result.data[0]["event_name"] == "Evening Service"
        record = create.await_args.args[0]
        assert record["event_id"] == weekly["event_id"]
        assert record["date"] == datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)
        assert record["status"] == "present"
        activity.record.assert_awaited_once()


class TestSelfMark:

    @pytest.fixture
    def events(self):
        service = MagicMock()
        service.get_by_id = AsyncMock(return_value=ok(event_row(NOW)))
        return service

    @pytest.fixture
    def attendance(self, events, members, activity):
        with patch("services.attendance_service.get_events_service", return_value=events), \
                patch("services.attendance_service.get_members_service", return_value=members), \
                patch("services.attendance_service.get_activity_service", return_value=activity):
            yield AttendanceService()

    @pytest.mark.asyncio
    async def test_self_attendance_disabled(self, attendance, events):
        events.get_by_id.return_value = ok(event_row(NOW, allow_self_attendance=False))
        result = await attendance.self_mark(MEMBER_ID, "e1", now=NOW)
        assert result.error_type == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_second_call_returns_existing_record(self, attendance):
        existing = ok({"record_id": "r1", "status": "present"})
        with patch.object(attendance, "find_for_day", new=AsyncMock(return_value=existing)), \
                patch.object(attendance, "create", new=AsyncMock()) as create:
            result = await attendance.self_mark(MEMBER_ID, "e1", now=NOW)

        assert result.data[0]["already_marked"] is True
        assert result.data[0]["record_id"] == "r1"
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_call_creates_record(self, attendance):
        with patch.object(attendance, "find_for_day", new=AsyncMock(return_value=ok())), \
                patch.object(attendance, "create", new=AsyncMock(return_value=ok({"record_id": "r2"}))) as create:
            result = await attendance.self_mark(MEMBER_ID, "e1", now=NOW)

        assert result.data[0]["already_marked"] is False
        assert create.await_args.args[0]["notes"] == "Self check-in via mobile app"

    @pytest.mark.asyncio
    async def test_unknown_member(self, attendance, members):
        members.get_by_id.return_value = failure("Record not found", "RESOURCE_NOT_FOUND")
        result = await attendance.self_mark(MEMBER_ID, "e1", now=NOW)
        assert result.error == "Member not found"


class TestGivingTotals:

    @pytest.fixture
    def giving(self, members):
        with patch("services.giving_service.get_members_service", return_value=members):
            yield GivingService()

    def gift(self, **overrides):
        row = {"giving_id": "g1", "member_id": MEMBER_ID, "amount": "100.00", "payment_status": "completed"}
        row.update(overrides)
        return row

    async def update(self, giving, before, after):
        with patch.object(giving, "get_by_id", new=AsyncMock(return_value=ok(before))), \
                patch.object(giving, "update", new=AsyncMock(return_value=ok(after))):
            return await giving.update_giving("g1", {})

    @pytest.mark.asyncio
    async def test_amount_change_moves_difference(self, giving, members):
        await self.update(giving, self.gift(), self.gift(amount="150.00"))
        members.adjust_total_giving.assert_awaited_once_with(MEMBER_ID, Decimal("50"))

    @pytest.mark.asyncio
    async def test_pending_becomes_completed(self, giving, members):
        await self.update(giving, self.gift(payment_status="pending"), self.gift())
        members.adjust_total_giving.assert_awaited_once_with(MEMBER_ID, Decimal("100"))

    @pytest.mark.asyncio
    async def test_completed_becomes_failed(self, giving, members):
        await self.update(giving, self.gift(), self.gift(payment_status="failed"))
        members.adjust_total_giving.assert_awaited_once_with(MEMBER_ID, Decimal("-100"))

    @pytest.mark.asyncio
    async def test_pending_amount_change_leaves_total(self, giving, members):
        await self.update(giving, self.gift(payment_status="pending"),
                          self.gift(payment_status="pending", amount="250.00"))
        members.adjust_total_giving.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gift_moved_to_another_member(self, giving, members):
        other = str(uuid.uuid4())
        await self.update(giving, self.gift(), self.gift(member_id=other))
        assert [c.args for c in members.adjust_total_giving.await_args_list] == [
            (MEMBER_ID, Decimal("-100")), (other, Decimal("100")),
        ]

    @pytest.mark.asyncio
    async def test_failed_update_leaves_total(self, giving, members):
        with patch.object(giving, "get_by_id", new=AsyncMock(return_value=ok(self.gift()))), \
                patch.object(giving, "update", new=AsyncMock(return_value=failure("bad", "INVALID_REQUEST"))):
            result = await giving.update_giving("g1", {"amount": -1})
        assert result.error_type == "INVALID_REQUEST"
        members.adjust_total_giving.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_completed_gift(self, giving, members):
        with patch.object(giving, "delete", new=AsyncMock(return_value=ok(self.gift()))):
            await giving.delete_giving("g1")
        members.adjust_total_giving.assert_awaited_once_with(MEMBER_ID, Decimal("-100"))

    @pytest.mark.asyncio
    async def test_delete_pending_gift(self, giving, members):
        with patch.object(giving, "delete", new=AsyncMock(return_value=ok(self.gift(payment_status="pending")))):
            await giving.delete_giving("g1")
        members.adjust_total_giving.assert_not_awaited()


class TestCommunityMembership:

    LEADER_ID = str(uuid.uuid4())

    @pytest.fixture
    def communities(self, members):
        with patch("services.communities_service.get_members_service", return_value=members):
            yield CommunitiesService()

    def community(self, **overrides):
        row = {"community_id": "c1", "name": "Young Adults", "leader_id": self.LEADER_ID,
               "member_ids": [self.LEADER_ID], "invite_only": False}
        row.update(overrides)
        return row

    def loaded(self, communities, row):
        return patch.object(communities, "get_by_id", new=AsyncMock(return_value=ok(row)))

    @pytest.mark.asyncio
    async def test_invite_only_refuses_join(self, communities):
        with self.loaded(communities, self.community(invite_only=True)), \
                patch.object(communities, "add_to_array", new=AsyncMock()) as add:
            result = await communities.join("c1", MEMBER_ID)
        assert result.error_type == "FORBIDDEN"
        add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_join_mirrors_on_member(self, communities, members):
        with self.loaded(communities, self.community()), \
                patch.object(communities, "add_to_array", new=AsyncMock(return_value=ok(self.community()))):
            result = await communities.join("c1", MEMBER_ID)
        assert result.success
        members.add_to_array.assert_awaited_once_with(MEMBER_ID, "community_ids", "c1")

    @pytest.mark.asyncio
    async def test_join_twice(self, communities):
        with self.loaded(communities, self.community(member_ids=[self.LEADER_ID, MEMBER_ID])):
            result = await communities.join("c1", MEMBER_ID)
        assert result.error == "Already a member of this community"

    @pytest.mark.asyncio
    async def test_leader_cannot_leave(self, communities):
        with self.loaded(communities, self.community()):
            result = await communities.leave("c1", self.LEADER_ID)
        assert result.error == "The community leader cannot leave the community"

    @pytest.mark.asyncio
    async def test_leave_removes_from_member(self, communities, members):
        with self.loaded(communities, self.community(member_ids=[self.LEADER_ID, MEMBER_ID])), \
                patch.object(communities, "remove_from_array", new=AsyncMock(return_value=ok(self.community()))):
            result = await communities.leave("c1", MEMBER_ID)
        assert result.success
        members.remove_from_array.assert_awaited_once_with(MEMBER_ID, "community_ids", "c1")

    @pytest.mark.asyncio
    async def test_only_leader_or_staff_manage(self, communities):
        with self.loaded(communities, self.community()):
            result = await communities.manage_member("c1", MEMBER_ID, False, "add", str(uuid.uuid4()))
        assert result.error_type == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_leader_cannot_be_removed(self, communities):
        with self.loaded(communities, self.community()), \
                patch.object(communities, "remove_from_array", new=AsyncMock()) as remove:
            result = await communities.manage_member("c1", None, True, "remove", self.LEADER_ID)
        assert result.error == "The community leader cannot be removed"
        remove.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_leader_adds_member(self, communities, members):
        with self.loaded(communities, self.community()), \
                patch.object(communities, "add_to_array", new=AsyncMock(return_value=ok(self.community()))) as add:
            result = await communities.manage_member("c1", self.LEADER_ID, False, "add", MEMBER_ID)
        assert result.success
        add.assert_awaited_once_with("c1", "member_ids", MEMBER_ID)


class TestTeamMembership:

    LEAD_ID = str(uuid.uuid4())

    @pytest.fixture
    def teams(self, members):
        with patch("services.teams_service.get_members_service", return_value=members):
            yield TeamsService()

    def team(self, team_id="t-new"):
        return {"team_id": team_id, "name": "Ushers", "team_lead_id": self.LEAD_ID, "member_ids": [self.LEAD_ID]}

    @pytest.mark.asyncio
    async def test_add_moves_member_out_of_previous_team(self, teams, members):
        members.get_by_id.return_value = ok({"member_id": MEMBER_ID, "team_id": "t-old"})
        with patch.object(teams, "get_by_id", new=AsyncMock(return_value=ok(self.team()))), \
                patch.object(teams, "remove_from_array", new=AsyncMock(return_value=ok())) as remove, \
                patch.object(teams, "add_to_array", new=AsyncMock(return_value=ok(self.team()))) as add:
            result = await teams.add_member("t-new", MEMBER_ID)

        assert result.success
        remove.assert_awaited_once_with("t-old", "member_ids", MEMBER_ID)
        add.assert_awaited_once_with("t-new", "member_ids", MEMBER_ID)
        members.update.assert_awaited_once_with(MEMBER_ID, {"team_id": "t-new"})

    @pytest.mark.asyncio
    async def test_add_without_previous_team(self, teams, members):
        with patch.object(teams, "get_by_id", new=AsyncMock(return_value=ok(self.team()))), \
                patch.object(teams, "remove_from_array", new=AsyncMock()) as remove, \
                patch.object(teams, "add_to_array", new=AsyncMock(return_value=ok(self.team()))):
            await teams.add_member("t-new", MEMBER_ID)
        remove.assert_not_awaited()
        members.update.assert_awaited_once_with(MEMBER_ID, {"team_id": "t-new"})

    @pytest.mark.asyncio
    async def test_add_unknown_member(self, teams, members):
        members.get_by_id.return_value = failure("Record not found", "RESOURCE_NOT_FOUND")
        with patch.object(teams, "get_by_id", new=AsyncMock(return_value=ok(self.team()))):
            result = await teams.add_member("t-new", MEMBER_ID)
        assert result.error == "Member not found"

    @pytest.mark.asyncio
    async def test_remove_clears_member_team(self, teams, members):
        with patch.object(teams, "get_by_id", new=AsyncMock(return_value=ok(self.team()))), \
                patch.object(teams, "remove_from_array", new=AsyncMock(return_value=ok(self.team()))):
            result = await teams.remove_member("t-new", MEMBER_ID)
        assert result.success
        members.update.assert_awaited_once_with(MEMBER_ID, {"team_id": None})

    @pytest.mark.asyncio
    async def test_lead_cannot_be_removed(self, teams, members):
        with patch.object(teams, "get_by_id", new=AsyncMock(return_value=ok(self.team()))), \
                patch.object(teams, "remove_from_array", new=AsyncMock()) as remove:
            result = await teams.remove_member("t-new", self.LEAD_ID)
        assert result.error == "Cannot remove the team lead from the team"
        remove.assert_not_awaited()
        members.update.assert_not_awaited()


class TestCommentReplies:

    @pytest.fixture
    def comments(self, activity):
        with patch("services.comments_service.get_activity_service", return_value=activity):
            yield CommentsService()

    def parent(self, **overrides):
        row = {"comment_id": "p1", "target_type": "blog_post", "target_id": "b1"}
        row.update(overrides)
        return row

    @pytest.mark.asyncio
    async def test_parent_on_another_target(self, comments):
        with patch.object(comments, "get_by_id", new=AsyncMock(return_value=ok(self.parent(target_id="b2")))), \
                patch.object(comments, "create", new=AsyncMock()) as create:
            result = await comments.create_comment("Amen", MEMBER_ID, "blog_post", "b1", parent_comment_id="p1")
        assert result.error == "Reply must be on the same target as its parent comment"
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parent_of_another_type(self, comments):
        with patch.object(comments, "get_by_id", new=AsyncMock(return_value=ok(self.parent(target_type="event")))):
            result = await comments.create_comment("Amen", MEMBER_ID, "blog_post", "b1", parent_comment_id="p1")
        assert result.error_type == "INVALID_REQUEST"

    @pytest.mark.asyncio
    async def test_missing_parent(self, comments):
        missing = failure("Record not found", "RESOURCE_NOT_FOUND")
        with patch.object(comments, "get_by_id", new=AsyncMock(return_value=missing)):
            result = await comments.create_comment("Amen", MEMBER_ID, "blog_post", "b1", parent_comment_id="p1")
        assert result.error == "Parent comment not found"

    @pytest.mark.asyncio
    async def test_reply_on_same_target(self, comments, activity):
        created = ok({"comment_id": "c2"})
        with patch.object(comments, "get_by_id", new=AsyncMock(return_value=ok(self.parent()))), \
                patch.object(comments, "create", new=AsyncMock(return_value=created)) as create:
            result = await comments.create_comment("  Amen  ", MEMBER_ID, "blog_post", "b1", parent_comment_id="p1")

        assert result.success
        saved = create.await_args.args[0]
        assert saved["parent_comment_id"] == "p1"
        assert saved["content"] == "Amen"
        activity.record.assert_awaited_once()


class TestMediaLikes:

    @pytest.fixture
    def media(self):
        return MediaService()

    def item(self, **overrides):
        row = {"file_id": "f1", "title": "Choir", "is_public": True, "likes": []}
        row.update(overrides)
        return row

    @pytest.mark.asyncio
    async def test_like(self, media):
        with patch.object(media, "get_by_id", new=AsyncMock(return_value=ok(self.item()))), \
                patch.object(media, "add_to_array",
                             new=AsyncMock(return_value=ok(self.item(likes=[MEMBER_ID])))) as add:
            result = await media.toggle_like("f1", MEMBER_ID)

        add.assert_awaited_once_with("f1", "likes", MEMBER_ID)
        assert result.data[0]["liked"] is True
        assert result.data[0]["like_count"] == 1

    @pytest.mark.asyncio
    async def test_second_like_unlikes(self, media):
        with patch.object(media, "get_by_id", new=AsyncMock(return_value=ok(self.item(likes=[MEMBER_ID])))), \
                patch.object(media, "remove_from_array", new=AsyncMock(return_value=ok(self.item()))) as remove:
            result = await media.toggle_like("f1", MEMBER_ID)

        remove.assert_awaited_once_with("f1", "likes", MEMBER_ID)
        assert result.data[0]["liked"] is False
        assert result.data[0]["like_count"] == 0

    @pytest.mark.asyncio
    async def test_private_media_is_hidden(self, media):
        with patch.object(media, "get_by_id", new=AsyncMock(return_value=ok(self.item(is_public=False)))), \
                patch.object(media, "add_to_array", new=AsyncMock()) as add:
            result = await media.toggle_like("f1", MEMBER_ID)
        assert result.error == "Media not found"
        add.assert_not_awaited()
