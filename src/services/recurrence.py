"""
Recurring event expansion.

A recurring event is stored once. Listings materialise its future occurrences
inside a window; each occurrence is a copy of the event with its own date and
an id of the form "{event_id}_{YYYY-MM-DD}".
"""

import calendar
import logging
from datetime import datetime, date, timedelta
from typing import Dict, Any, List, Optional, Tuple

from config.settings import RECURRENCE_MAX_INSTANCES
from utils.helpers import parse_timestamp

logger = logging.getLogger(__name__)

OCCURRENCE_SEPARATOR = "_"

# Upper bound on steps walked from the base date, whatever the window
MAX_STEPS = 5000


def add_months(moment: datetime, months: int, anchor_day: Optional[int] = None) -> datetime:
    """
    Shift by calendar months, clamping the day to the target month's length.

    anchor_day keeps the original day of month so Jan 31 -> Feb 28 -> Mar 31.
    """
    day = anchor_day or moment.day
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(day, last_day))


def add_years(moment: datetime, years: int) -> datetime:
    """Shift by calendar years; Feb 29 falls back to Feb 28 in common years"""
    year = moment.year + years
    if moment.month == 2 and moment.day == 29 and not calendar.isleap(year):
        return moment.replace(year=year, day=28)
    return moment.replace(year=year)


def occurrence_at(base: datetime, recurring_type: str, step: int) -> datetime:
    """The step-th occurrence after base (step 0 is base itself)"""
    if recurring_type == "weekly":
        return base + timedelta(weeks=step)
    if recurring_type == "monthly":
        return add_months(base, step, anchor_day=base.day)
    if recurring_type == "yearly":
        return add_years(base, step)
    raise ValueError(f"Unsupported recurring type: {recurring_type}")


def build_occurrence_id(event_id: str, moment: datetime) -> str:
    return f"{event_id}{OCCURRENCE_SEPARATOR}{moment.strftime('%Y-%m-%d')}"


def parse_occurrence_id(value: str) -> Tuple[str, Optional[date]]:
    """
    Split "{event_id}_{YYYY-MM-DD}" into its parts.

    Plain event ids come back with a None date.
    """
    if OCCURRENCE_SEPARATOR not in value:
        return value, None
    event_id, _, suffix = value.rpartition(OCCURRENCE_SEPARATOR)
    try:
        return event_id, date.fromisoformat(suffix)
    except ValueError:
        return value, None


def occurrence_on(event: Dict[str, Any], day: date) -> Optional[datetime]:
    """
    The occurrence of a recurring event that falls on the given calendar day.

    The base date itself counts. Returns None when the event does not recur
    or its pattern skips that day.
    """
    recurring_type = event.get("recurring_type")
    if not event.get("is_recurring") or recurring_type not in RECURRENCE_MAX_INSTANCES:
        return None

    base = parse_timestamp(event["date"])
    for step in range(MAX_STEPS + 1):
        moment = occurrence_at(base, recurring_type, step)
        if moment.date() == day:
            return moment
        if moment.date() > day:
            return None
    return None


def expand_occurrences(
    event: Dict[str, Any],
    window_start: datetime,
    window_end: datetime,
    max_instances: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Materialise the occurrences of a recurring event that fall inside a window.

    Occurrences start one step after the base date. Expansion stops at the
    window end or once max_instances occurrences (default: the configured cap
    for the event's frequency) have been emitted. Non-recurring events yield
    nothing.
    """
    recurring_type = event.get("recurring_type")
    if not event.get("is_recurring") or not recurring_type:
        return []
    if recurring_type not in RECURRENCE_MAX_INSTANCES:
        logger.warning(f"Event {event.get('event_id')} has unknown recurring type '{recurring_type}'")
        return []

    limit = max_instances if max_instances is not None else RECURRENCE_MAX_INSTANCES[recurring_type]
    base = parse_timestamp(event["date"])
    base_end = parse_timestamp(event.get("end_date"))
    duration = base_end - base if base_end else None
    event_id = str(event["event_id"])

    occurrences = []
    for step in range(1, MAX_STEPS + 1):
        if len(occurrences) >= limit:
            break
        moment = occurrence_at(base, recurring_type, step)
        if moment > window_end:
            break
        if moment < window_start:
            continue

        occurrence = dict(event)
        occurrence["event_id"] = build_occurrence_id(event_id, moment)
        occurrence["original_event_id"] = event_id
        occurrence["is_recurring_instance"] = True
        occurrence["date"] = moment.isoformat()
        occurrence["end_date"] = (moment + duration).isoformat() if duration is not None else None
        occurrences.append(occurrence)

    return occurrences


def expand_events(
    events: List[Dict[str, Any]],
    window_start: datetime,
    window_end: datetime
) -> List[Dict[str, Any]]:
    """Base events plus their occurrences inside the window, sorted by date ascending"""
    expanded = []
    for event in events:
        base = dict(event)
        base["is_recurring_instance"] = False
        base["original_event_id"] = None
        expanded.append(base)
        expanded.extend(expand_occurrences(event, window_start, window_end))

    expanded.sort(key=lambda item: parse_timestamp(item["date"]))
    return expanded
