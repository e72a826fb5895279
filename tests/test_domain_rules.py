"""
Tests for form validation, event check-in rules, task lifecycle, anniversaries and comment threads
"""

from datetime import date, datetime, timezone

import pytest

from services.anniversaries_service import next_occurrence, days_until, annotate
from services.comments_service import build_threads
from services.events_service import (
    can_check_in, within_check_in_window, filter_by_type, to_mobile_event,
    attendance_lookup, attendance_status_for
)
from services.forms_service import is_blank, validate_responses
from services.tasks_service import apply_status_rules


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestFormResponses:

    FIELDS = [
        {"id": "name", "label": "Full Name", "type": "text", "required": True},
        {"id": "email", "label": "Email", "type": "email"},
        {"id": "service", "label": "Service", "type": "select", "options": ["First", "Second"]},
        {"id": "consent", "label": "Consent", "type": "checkbox", "required": True},
    ]

    @pytest.mark.parametrize("value,blank", [
        (None, True),
        ("   ", True),
        ([], True),
        ({}, True),
        (False, True),
        (0, False),
        ("x", False),
        (True, False),
    ])
    def test_is_blank(self, value, blank):
        assert is_blank(value) is blank

    def test_valid_answers(self):
        responses = {"name": "Ada", "email": "ada@example.com", "service": "First", "consent": True}
        assert validate_responses(self.FIELDS, responses) is None

    def test_required_field(self):
        assert validate_responses(self.FIELDS, {"name": " ", "consent": True}) == 'Field "Full Name" is required'

    def test_unchecked_required_checkbox(self):
        assert validate_responses(self.FIELDS, {"name": "Ada", "consent": False}) == 'Field "Consent" is required'

    def test_optional_blank_fields_skip_type_checks(self):
        assert validate_responses(self.FIELDS, {"name": "Ada", "email": "", "consent": True}) is None

    def test_email_format(self):
        error = validate_responses(self.FIELDS, {"name": "Ada", "email": "nope", "consent": True})
        assert error == 'Field "Email" must be a valid email address'

    def test_select_options(self):
        error = validate_responses(self.FIELDS, {"name": "Ada", "service": ["First", "Third"], "consent": True})
        assert error == 'Field "Service" must be one of: First, Second'


class TestCheckIn:

    def test_same_day_opens_check_in(self):
        assert can_check_in(utc(2026, 3, 15, 18), utc(2026, 3, 15, 7))

    def test_two_hours_before_across_midnight(self):
        assert can_check_in(utc(2026, 3, 16, 0, 30), utc(2026, 3, 15, 23))
        assert not can_check_in(utc(2026, 3, 16, 9), utc(2026, 3, 15, 23))

    def test_window_is_two_hours_either_side(self):
        start = utc(2026, 3, 15, 10)
        assert within_check_in_window(start, utc(2026, 3, 15, 8))
        assert within_check_in_window(start, utc(2026, 3, 15, 12))
        assert not within_check_in_window(start, utc(2026, 3, 15, 12, 1))
        assert not within_check_in_window(start, utc(2026, 3, 15, 7, 59))


class TestEventListings:

    def events(self):
        return [
            {"event_id": "a", "name": "A", "date": "2026-03-10T09:00:00+00:00"},
            {"event_id": "b", "name": "B", "date": "2026-03-20T09:00:00+00:00"},
            {"event_id": "c", "name": "C", "date": "2026-03-17T09:00:00+00:00"},
            {"event_id": "d", "name": "D", "date": "2026-03-01T09:00:00+00:00"},
        ]

    def test_upcoming_soonest_first(self):
        upcoming = filter_by_type(self.events(), "upcoming", utc(2026, 3, 15))
        assert [e["event_id"] for e in upcoming] == ["c", "b"]

    def test_past_newest_first(self):
        past = filter_by_type(self.events(), "past", utc(2026, 3, 15))
        assert [e["event_id"] for e in past] == ["a", "d"]

    def test_all_newest_first(self):
        everything = filter_by_type(self.events(), "all", utc(2026, 3, 15))
        assert [e["event_id"] for e in everything] == ["b", "c", "a", "d"]

    def test_mobile_shape(self):
        event = {
            "event_id": "e1_2026-03-15",
            "name": "Sunday Service",
            "date": "2026-03-15T18:30:00+00:00",
            "is_recurring": True,
            "recurring_type": "weekly",
            "is_recurring_instance": True,
            "original_event_id": "e1",
            "banner_image": "https://cdn.test/banner.png",
        }
        shaped = to_mobile_event(event, "upcoming", utc(2026, 3, 15, 8), user_attendance="present")
        assert shaped["id"] == "e1_2026-03-15"
        assert shaped["title"] == "Sunday Service"
        assert shaped["time"] == "6:30 PM"
        assert shaped["image"] == "https://cdn.test/banner.png"
        assert shaped["category"] == "weekly"
        assert shaped["can_check_in"] is True
        assert shaped["user_attendance"] == "present"

    def test_past_events_never_open_check_in(self):
        event = {"event_id": "e2", "name": "Picnic", "date": "2026-03-15T08:00:00+00:00"}
        shaped = to_mobile_event(event, "past", utc(2026, 3, 15, 9))
        assert shaped["can_check_in"] is False
        assert shaped["category"] == "Event"

    def test_attendance_lookup_per_occurrence(self):
        records = [
            {"event_id": "e1", "date": "2026-03-08T09:05:00Z", "status": "present"},
            {"event_id": "e2", "date": "2026-03-09T09:05:00Z", "status": "absent"},
        ]
        by_day, by_event = attendance_lookup(records)
        occurrence = {"event_id": "e1_2026-03-08", "original_event_id": "e1",
                      "is_recurring_instance": True, "date": "2026-03-08T09:00:00+00:00"}
        other_week = dict(occurrence, event_id="e1_2026-03-15", date="2026-03-15T09:00:00+00:00")
        assert attendance_status_for(occurrence, by_day, by_event) == "present"
        assert attendance_status_for(other_week, by_day, by_event) is None
        assert attendance_status_for({"event_id": "e2", "date": "2026-03-09T09:00:00Z"}, by_day, by_event) == "absent"


class TestTaskLifecycle:

    def test_completion_is_stamped(self):
        updates = apply_status_rules({"status": "in_progress"}, {"status": "completed"})
        assert updates["completed_at"] is not None

    def test_recompleting_keeps_original_stamp(self):
        updates = apply_status_rules({"status": "completed"}, {"status": "completed"})
        assert "completed_at" not in updates

    def test_assigning_open_task(self):
        updates = apply_status_rules({"status": "open"}, {"assignee_id": "m1"})
        assert updates["status"] == "assigned"
        assert updates["pickup_date"] is not None

    def test_explicit_status_wins(self):
        updates = apply_status_rules({"status": "open"}, {"assignee_id": "m1", "status": "in_progress"})
        assert updates["status"] == "in_progress"
        assert "pickup_date" not in updates

    def test_input_is_not_mutated(self):
        original = {"assignee_id": "m1"}
        apply_status_rules({"status": "open"}, original)
        assert original == {"assignee_id": "m1"}


class TestAnniversaryDates:

    def test_later_this_year(self):
        assert next_occurrence(date(1990, 6, 1), date(2026, 3, 15)) == date(2026, 6, 1)

    def test_already_passed_rolls_over(self):
        assert next_occurrence(date(1990, 1, 1), date(2026, 3, 15)) == date(2027, 1, 1)
        assert days_until(date(1990, 1, 1), date(2026, 12, 31)) == 1

    def test_today_counts(self):
        assert days_until(date(2000, 3, 15), date(2026, 3, 15)) == 0

    def test_leap_day_falls_back_to_feb_28(self):
        assert next_occurrence(date(2000, 2, 29), date(2026, 1, 1)) == date(2026, 2, 28)
        assert next_occurrence(date(2000, 2, 29), date(2028, 1, 1)) == date(2028, 2, 29)

    def test_annotate(self):
        record = {"anniversary_id": "a1", "date": "2010-04-02", "type": "wedding"}
        member = {"first_name": "Ada", "last_name": "Obi", "email": "ada@example.com"}
        annotated = annotate(record, date(2026, 3, 31), member)
        assert annotated["next_occurrence"] == "2026-04-02"
        assert annotated["days_until"] == 2
        assert annotated["years"] == 16
        assert annotated["member_name"] == "Ada Obi"
        assert "member_name" not in record


class TestCommentThreads:

    def test_nesting_and_order(self):
        comments = [
            {"comment_id": "r1", "created_at": "2026-03-01T10:00:00Z", "parent_comment_id": None},
            {"comment_id": "r2", "created_at": "2026-03-02T10:00:00Z", "parent_comment_id": None},
            {"comment_id": "c2", "created_at": "2026-03-01T12:00:00Z", "parent_comment_id": "r1"},
            {"comment_id": "c1", "created_at": "2026-03-01T11:00:00Z", "parent_comment_id": "r1"},
        ]
        threads = build_threads(comments)
        assert [c["comment_id"] for c in threads] == ["r2", "r1"]
        assert [c["comment_id"] for c in threads[1]["replies"]] == ["c1", "c2"]
        assert threads[0]["replies"] == []

    def test_orphaned_replies_are_promoted(self):
        comments = [{"comment_id": "c1", "created_at": "2026-03-01T11:00:00Z", "parent_comment_id": "gone"}]
        assert [c["comment_id"] for c in build_threads(comments)] == ["c1"]
