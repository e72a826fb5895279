"""
Tests for attendance streaks, giving aggregates and the member activity feed
"""

from datetime import datetime, timezone

from services.journey import (
    calculate_attendance_streak, giving_streak, summarize_giving, merge_recent_activities
)
from services.journey_service import build_member_stats

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestAttendanceStreak:

    def test_consecutive_weeks(self):
        dates = ["2026-03-14T09:00:00Z", "2026-03-08T09:00:00Z", "2026-03-01T09:00:00Z"]
        assert calculate_attendance_streak(dates, NOW) == 3

    def test_gap_longer_than_a_week_ends_streak(self):
        dates = ["2026-03-14T09:00:00Z", "2026-03-09T09:00:00Z", "2026-02-28T09:00:00Z"]
        assert calculate_attendance_streak(dates, NOW) == 2

    def test_stale_attendance_is_no_streak(self):
        assert calculate_attendance_streak(["2026-02-01T09:00:00Z"], NOW) == 0

    def test_future_dates_are_ignored(self):
        dates = ["2026-04-01T09:00:00Z", "2026-03-14T09:00:00Z"]
        assert calculate_attendance_streak(dates, NOW) == 1

    def test_unsorted_input(self):
        dates = ["2026-03-01T09:00:00Z", "2026-03-14T09:00:00Z", "2026-03-08T09:00:00Z"]
        assert calculate_attendance_streak(dates, NOW) == 3

    def test_empty(self):
        assert calculate_attendance_streak([], NOW) == 0


class TestGivingStreak:

    def test_counts_back_from_current_month(self):
        moments = [utc(2026, 3, 1), utc(2026, 2, 10), utc(2026, 1, 5), utc(2025, 11, 5)]
        assert giving_streak(moments, NOW) == 3

    def test_crosses_year_boundary(self):
        moments = [utc(2026, 1, 3), utc(2025, 12, 3)]
        assert giving_streak(moments, utc(2026, 1, 20)) == 2

    def test_nothing_this_month(self):
        assert giving_streak([utc(2026, 2, 10)], NOW) == 0


class TestSummarizeGiving:

    def records(self):
        return [
            {"giving_id": "g1", "amount": "100.10", "category": "tithe", "date": "2026-03-02T10:00:00Z"},
            {"giving_id": "g2", "amount": "50.20", "category": "offering", "date": "2026-02-02T10:00:00Z"},
            {"giving_id": "g3", "amount": "49.70", "category": "tithe", "date": "2025-12-02T10:00:00Z"},
            {"giving_id": "g4", "amount": "500", "category": "tithe", "date": "2026-03-03T10:00:00Z",
             "payment_status": "pending"},
        ]

    def test_only_completed_payments_count(self):
        summary = summarize_giving(self.records(), NOW)
        assert summary["total_giving"] == 200.0
        assert summary["total_donations"] == 3

    def test_year_and_month_totals(self):
        summary = summarize_giving(self.records(), NOW)
        assert summary["yearly_giving"] == 150.3
        assert summary["yearly_donations"] == 2
        assert summary["monthly_giving"] == 100.1
        assert summary["monthly_donations"] == 1

    def test_category_breakdown_sorted_by_total(self):
        breakdown = summarize_giving(self.records(), NOW)["category_breakdown"]
        assert [entry["category"] for entry in breakdown] == ["tithe", "offering"]
        assert breakdown[0]["total"] == 149.8
        assert breakdown[0]["count"] == 2
        assert breakdown[0]["percentage"] == 75

    def test_monthly_breakdown_runs_to_current_month(self):
        months = summarize_giving(self.records(), NOW)["monthly_breakdown"]
        assert [m["month_name"] for m in months] == ["January", "February", "March"]
        assert [m["total"] for m in months] == [0.0, 50.2, 100.1]

    def test_recent_giving_newest_first(self):
        summary = summarize_giving(self.records(), NOW)
        assert [r["giving_id"] for r in summary["recent_giving"]] == ["g1", "g2", "g3"]
        assert summary["last_giving_date"].startswith("2026-03-02")

    def test_empty_history(self):
        summary = summarize_giving([], NOW)
        assert summary["total_giving"] == 0.0
        assert summary["average_donation"] == 0.0
        assert summary["last_giving_date"] is None
        assert summary["giving_streak"] == 0


class TestRecentActivities:

    def test_merges_newest_first_with_limit(self):
        attendance = [{"record_id": "a1", "event_name": "Service", "date": "2026-03-08T09:00:00Z"}]
        tasks = [
            {"task_id": "t1", "title": "Set up chairs", "status": "completed",
             "completed_at": "2026-03-10T09:00:00Z"},
            {"task_id": "t2", "title": "Print flyers", "status": "pending",
             "created_at": "2026-03-01T09:00:00Z"},
        ]
        givings = [{"giving_id": "g1", "category": "building_fund", "amount": 10,
                    "date": "2026-03-12T09:00:00Z"}]

        feed = merge_recent_activities(attendance, tasks, givings, limit=3)
        assert [item["reference_id"] for item in feed] == ["g1", "t1", "a1"]
        assert feed[0]["title"] == "Gave building fund"
        assert feed[1]["type"] == "task_completed"

    def test_undated_items_are_dropped(self):
        feed = merge_recent_activities([{"record_id": "a1", "date": None}], [], [])
        assert feed == []


class TestBuildMemberStats:

    def test_counts_present_attendance_and_completed_giving(self):
        member = {"member_id": "m1", "community_ids": ["c1", "c2"], "date_joined": "2025-01-01"}
        attendance = [
            {"status": "present", "event_name": "Service", "date": "2026-03-14T09:00:00Z"},
            {"status": "absent", "event_name": "Service", "date": "2026-03-07T09:00:00Z"},
            {"status": "present", "event_name": "Service", "date": "2026-02-28T09:00:00Z"},
        ]
        givings = [
            {"amount": 20, "category": "tithe", "date": "2026-03-01T09:00:00Z", "payment_status": "completed"},
            {"amount": 80, "category": "tithe", "date": "2026-03-02T09:00:00Z", "payment_status": "failed"},
        ]

        stats = build_member_stats(member, attendance, givings, NOW)
        assert stats["total_attendance"] == 2
        assert stats["attendance_streak"] == 1
        assert stats["total_giving"] == 20.0
        assert stats["communities_count"] == 2
        assert stats["this_month"] == {"attendance": 1, "giving": 20.0}
        assert stats["recent_activities"][0]["type"] == "attendance"
