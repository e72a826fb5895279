"""
Events service - event records plus recurring occurrence listings
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Tuple

from config.settings import WEB_EVENT_WINDOW_DAYS, MOBILE_EVENT_WINDOW_DAYS, CHECK_IN_WINDOW_HOURS
from services.base_service import BaseService, ServiceResult, failure
from services.recurrence import expand_events, occurrence_on, parse_occurrence_id
from utils.helpers import utc_now, parse_timestamp, format_time_12h

logger = logging.getLogger(__name__)


def can_check_in(event_date: datetime, now: datetime) -> bool:
    """An upcoming event opens for check-in on its calendar day or two hours before it starts"""
    same_day = now.date() == event_date.date()
    return same_day or now >= event_date - timedelta(hours=CHECK_IN_WINDOW_HOURS)


def within_check_in_window(event_date: datetime, now: datetime) -> bool:
    window = timedelta(hours=CHECK_IN_WINDOW_HOURS)
    return event_date - window <= now <= event_date + window


def filter_by_type(events: List[Dict[str, Any]], list_type: str, now: datetime) -> List[Dict[str, Any]]:
    """
    Narrow an expanded listing to upcoming, past or all events.

    Upcoming events are sorted soonest first, everything else newest first.
    """
    if list_type == "upcoming":
        selected = [e for e in events if parse_timestamp(e["date"]) >= now]
    elif list_type == "past":
        selected = [e for e in events if parse_timestamp(e["date"]) < now]
    else:
        selected = list(events)

    selected.sort(key=lambda e: parse_timestamp(e["date"]), reverse=list_type != "upcoming")
    return selected


def to_mobile_event(
    event: Dict[str, Any],
    list_type: str,
    now: datetime,
    user_attendance: Optional[str] = None
) -> Dict[str, Any]:
    """Shape an (expanded) event for the mobile app"""
    moment = parse_timestamp(event["date"])
    return {
        "id": event["event_id"],
        "title": event["name"],
        "name": event["name"],
        "description": event.get("description"),
        "date": event["date"],
        "time": format_time_12h(moment),
        "end_date": event.get("end_date"),
        "location": event.get("location"),
        "banner_image": event.get("banner_image"),
        "image": event.get("banner_image"),
        "is_recurring": event.get("is_recurring", False),
        "recurring_type": event.get("recurring_type"),
        "is_recurring_instance": event.get("is_recurring_instance", False),
        "original_event_id": event.get("original_event_id"),
        "community_id": event.get("community_id"),
        "user_attendance": user_attendance,
        "can_check_in": list_type == "upcoming" and can_check_in(moment, now),
        "category": event.get("recurring_type") or "Event",
    }


def attendance_lookup(records: List[Dict[str, Any]]) -> Tuple[Dict[Tuple[str, str], str], Dict[str, str]]:
    """Index attendance by (event id, calendar day) and by event id"""
    by_day: Dict[Tuple[str, str], str] = {}
    by_event: Dict[str, str] = {}
    for record in records:
        day = parse_timestamp(record["date"]).date().isoformat()
        by_day[(record["event_id"], day)] = record["status"]
        by_event[record["event_id"]] = record["status"]
    return by_day, by_event


def attendance_status_for(event: Dict[str, Any], by_day: Dict, by_event: Dict) -> Optional[str]:
    if event.get("is_recurring_instance"):
        day = parse_timestamp(event["date"]).date().isoformat()
        return by_day.get((event["original_event_id"], day))
    return by_event.get(event["event_id"])


class EventsService(BaseService):
    """Service for event operations"""

    def __init__(self):
        super().__init__("events")

    async def read_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Dict[str, str]]] = None,
        search: Optional[str] = None
    ) -> ServiceResult:
        """Every matching row, fetched one contract-sized page at a time"""
        page_size = self.contract.limits.max_rows
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = await self.read(filters=filters, order_by=order_by, limit=page_size,
                                   offset=offset, search=search)
            if not page.success:
                return page
            rows.extend(page.data)
            if len(page.data) < page_size:
                return ServiceResult(success=True, data=rows, count=len(rows))
            offset += page_size

    async def get_base_events(
        self,
        search: Optional[str] = None,
        community_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> ServiceResult:
        """
        Every recurring event plus the one-off events dated between start and end

        Recurring events are loaded whatever their base date since their
        occurrences can land in any window. A missing bound leaves that side
        of the range open.
        """
        scope = {"community_id": community_id} if community_id else {}
        recurring = await self.read_all(
            filters={**scope, "is_recurring": True},
            order_by=[{"field": "date", "dir": "asc"}],
            search=search
        )
        if not recurring.success:
            return recurring

        one_off_filters: Dict[str, Any] = {**scope, "is_recurring": False}
        if start and end:
            one_off_filters["date"] = {"op": "BETWEEN", "value": [start, end]}
        elif start:
            one_off_filters["date"] = {"op": ">=", "value": start}
        elif end:
            one_off_filters["date"] = {"op": "<", "value": end}
        one_offs = await self.read_all(
            filters=one_off_filters,
            order_by=[{"field": "date", "dir": "desc"}],
            search=search
        )
        if not one_offs.success:
            return one_offs

        events = recurring.data + one_offs.data
        return ServiceResult(success=True, data=events, count=len(events))

    async def list_events(
        self,
        search: Optional[str] = None,
        upcoming: bool = False,
        now: Optional[datetime] = None
    ) -> ServiceResult:
        """
        Base events plus recurring occurrences for the coming year, sorted by date

        Args:
            search: Case-insensitive match on name, description or location
            upcoming: Only events dated now or later
        """
        now = now or utc_now()
        result = await self.get_base_events(search, start=now if upcoming else None)
        if not result.success:
            return result

        events = expand_events(result.data, now, now + timedelta(days=WEB_EVENT_WINDOW_DAYS))
        if upcoming:
            events = [e for e in events if parse_timestamp(e["date"]) >= now]
        return ServiceResult(success=True, data=events, count=len(events))

    async def list_mobile_events(
        self,
        list_type: str = "upcoming",
        page: int = 1,
        limit: int = 10,
        attendance: Optional[List[Dict[str, Any]]] = None,
        now: Optional[datetime] = None
    ) -> Tuple[ServiceResult, int]:
        """
        Page through events for the mobile app

        Occurrences are expanded for the next ninety days. When the caller's
        attendance records are given, each item reports the caller's status
        for that event on that calendar day.

        Returns:
            (ServiceResult with the page of mobile events, total matching events)
        """
        now = now or utc_now()
        if list_type == "upcoming":
            result = await self.get_base_events(start=now)
        elif list_type == "past":
            result = await self.get_base_events(end=now)
        else:
            result = await self.get_base_events()
        if not result.success:
            return result, 0

        expanded = expand_events(result.data, now, now + timedelta(days=MOBILE_EVENT_WINDOW_DAYS))
        selected = filter_by_type(expanded, list_type, now)
        total = len(selected)
        start = (page - 1) * limit
        page_items = selected[start:start + limit]

        by_day, by_event = attendance_lookup(attendance or [])
        data = [
            to_mobile_event(event, list_type, now, attendance_status_for(event, by_day, by_event))
            for event in page_items
        ]
        return ServiceResult(success=True, data=data, count=len(data)), total

    async def resolve_occurrence(self, event_id: str) -> ServiceResult:
        """
        Load the event behind a plain or occurrence id.

        An occurrence id must name a day the event actually recurs on. The
        returned record carries that occurrence's date and is_recurring_instance.
        """
        base_id, occurrence_day = parse_occurrence_id(event_id)
        result = await self.get_by_id(base_id)
        if not result.success:
            if result.error_type == "RESOURCE_NOT_FOUND":
                return failure("Event not found", "RESOURCE_NOT_FOUND")
            return result

        event = dict(result.data[0])
        event["is_recurring_instance"] = False
        if occurrence_day is not None:
            moment = occurrence_on(event, occurrence_day)
            if moment is None:
                logger.info(f"Rejected occurrence id {event_id}: event does not fall on {occurrence_day}")
                return failure("Event not found", "RESOURCE_NOT_FOUND")
            base_date = parse_timestamp(event["date"])
            base_end = parse_timestamp(event.get("end_date"))
            event["date"] = moment.isoformat()
            if base_end:
                event["end_date"] = (moment + (base_end - base_date)).isoformat()
            event["is_recurring_instance"] = True
            event["original_event_id"] = base_id
        return ServiceResult(success=True, data=[event], count=1)

    async def upcoming_events(self, limit: int = 5, now: Optional[datetime] = None,
                              community_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """The next few events (occurrences included) from now"""
        now = now or utc_now()
        result = await self.get_base_events(community_id=community_id, start=now)
        if not result.success:
            logger.warning(f"Could not load upcoming events: {result.error}")
            return []
        expanded = expand_events(result.data, now, now + timedelta(days=MOBILE_EVENT_WINDOW_DAYS))
        return filter_by_type(expanded, "upcoming", now)[:limit]


# Global service instance
_events_service: Optional[EventsService] = None


def get_events_service() -> EventsService:
    """Get the global events service instance"""
    global _events_service
    if _events_service is None:
        _events_service = EventsService()
    return _events_service
