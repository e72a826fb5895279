"""
Tests for recurring event expansion
"""

from datetime import date, datetime, timezone, timedelta

import pytest

from services.recurrence import (
    add_months, add_years, occurrence_at, build_occurrence_id, parse_occurrence_id,
    expand_occurrences, expand_events, occurrence_on
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def weekly_event(**overrides):
    event = {
        "event_id": "e1",
        "name": "Sunday Service",
        "date": "2026-01-04T09:00:00+00:00",
        "end_date": "2026-01-04T11:00:00+00:00",
        "is_recurring": True,
        "recurring_type": "weekly",
    }
    event.update(overrides)
    return event


class TestCalendarArithmetic:

    def test_add_months_clamps_to_month_end(self):
        assert add_months(utc(2026, 1, 31), 1) == utc(2026, 2, 28)

    def test_add_months_keeps_anchor_day(self):
        feb = add_months(utc(2026, 1, 31), 1, anchor_day=31)
        assert add_months(feb, 1, anchor_day=31) == utc(2026, 3, 31)

    def test_add_months_rolls_year(self):
        assert add_months(utc(2026, 11, 15), 3) == utc(2027, 2, 15)

    def test_add_years_leap_day(self):
        assert add_years(utc(2024, 2, 29), 1) == utc(2025, 2, 28)
        assert add_years(utc(2024, 2, 29), 4) == utc(2028, 2, 29)

    def test_occurrence_at_rejects_unknown_frequency(self):
        with pytest.raises(ValueError):
            occurrence_at(utc(2026, 1, 1), "daily", 1)


class TestOccurrenceIds:

    def test_round_trip(self):
        occurrence_id = build_occurrence_id("abc", utc(2026, 3, 8, 9))
        assert occurrence_id == "abc_2026-03-08"
        event_id, day = parse_occurrence_id(occurrence_id)
        assert event_id == "abc"
        assert day.isoformat() == "2026-03-08"

    def test_plain_id_has_no_date(self):
        assert parse_occurrence_id("8c1d2b4e-aaaa-bbbb-cccc-1234567890ab") == (
            "8c1d2b4e-aaaa-bbbb-cccc-1234567890ab", None
        )

    def test_unparseable_suffix_is_left_alone(self):
        assert parse_occurrence_id("some_name") == ("some_name", None)


class TestExpandOccurrences:

    def test_non_recurring_event_yields_nothing(self):
        event = weekly_event(is_recurring=False)
        assert expand_occurrences(event, utc(2026, 1, 1), utc(2026, 12, 31)) == []

    def test_weekly_occurrences_start_after_base(self):
        occurrences = expand_occurrences(weekly_event(), utc(2026, 1, 1), utc(2026, 1, 31))
        assert [o["event_id"] for o in occurrences] == ["e1_2026-01-11", "e1_2026-01-18", "e1_2026-01-25"]
        assert all(o["original_event_id"] == "e1" for o in occurrences)
        assert all(o["is_recurring_instance"] for o in occurrences)

    def test_duration_is_preserved(self):
        occurrence = expand_occurrences(weekly_event(), utc(2026, 1, 1), utc(2026, 1, 12))[0]
        start = datetime.fromisoformat(occurrence["date"])
        end = datetime.fromisoformat(occurrence["end_date"])
        assert end - start == timedelta(hours=2)

    def test_weekly_cap(self):
        occurrences = expand_occurrences(weekly_event(), utc(2026, 1, 1), utc(2027, 12, 31))
        assert len(occurrences) == 24

    def test_monthly_cap(self):
        event = weekly_event(recurring_type="monthly")
        assert len(expand_occurrences(event, utc(2026, 1, 1), utc(2030, 1, 1))) == 12

    def test_yearly_cap(self):
        event = weekly_event(recurring_type="yearly")
        assert len(expand_occurrences(event, utc(2026, 1, 1), utc(2040, 1, 1))) == 6

    def test_occurrences_before_window_are_skipped(self):
        occurrences = expand_occurrences(weekly_event(), utc(2026, 2, 1), utc(2026, 2, 14))
        assert [o["event_id"] for o in occurrences] == ["e1_2026-02-01", "e1_2026-02-08"]

    def test_unknown_frequency_yields_nothing(self):
        event = weekly_event(recurring_type="fortnightly")
        assert expand_occurrences(event, utc(2026, 1, 1), utc(2026, 12, 31)) == []


class TestOccurrenceOn:

    def test_base_day_counts(self):
        assert occurrence_on(weekly_event(), date(2026, 1, 4)) == utc(2026, 1, 4, 9)

    def test_day_on_the_weekly_pattern(self):
        assert occurrence_on(weekly_event(), date(2026, 3, 1)) == utc(2026, 3, 1, 9)

    def test_day_off_the_weekly_pattern(self):
        assert occurrence_on(weekly_event(), date(2026, 3, 2)) is None

    def test_day_before_the_series_starts(self):
        assert occurrence_on(weekly_event(), date(2025, 12, 28)) is None

    def test_anchored_monthly_month_end(self):
        event = weekly_event(date="2026-01-31T09:00:00+00:00", recurring_type="monthly")
        assert occurrence_on(event, date(2026, 2, 28)) == utc(2026, 2, 28, 9)
        assert occurrence_on(event, date(2026, 3, 31)) == utc(2026, 3, 31, 9)
        assert occurrence_on(event, date(2026, 3, 28)) is None

    def test_one_off_event_has_no_occurrences(self):
        event = weekly_event(is_recurring=False, recurring_type=None)
        assert occurrence_on(event, date(2026, 1, 4)) is None


class TestExpandEvents:

    def test_sorted_with_base_events_marked(self):
        single = {
            "event_id": "e2",
            "name": "Picnic",
            "date": "2026-01-15T12:00:00+00:00",
            "is_recurring": False,
        }
        expanded = expand_events([weekly_event(), single], utc(2026, 1, 1), utc(2026, 1, 20))
        assert [e["event_id"] for e in expanded] == ["e1", "e1_2026-01-11", "e2", "e1_2026-01-18"]
        assert expanded[0]["is_recurring_instance"] is False
        assert expanded[0]["original_event_id"] is None
