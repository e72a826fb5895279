"""
Attendance service - attendance records, event check-in and self check-in
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Tuple
from uuid import UUID

from services.base_service import BaseService, ServiceResult, failure, is_uuid
from services.events_service import get_events_service, within_check_in_window
from services.members_service import get_members_service
from services.activity_service import get_activity_service
from services.journey import calculate_attendance_streak
from utils.helpers import utc_now, parse_timestamp, parse_date

logger = logging.getLogger(__name__)

JOINED_SELECT = """
    SELECT a.*,
           m.first_name AS member_first_name, m.last_name AS member_last_name, m.email AS member_email,
           e.name AS event_name, e.date AS event_date, e.location AS event_location
    FROM attendance_records a
    LEFT JOIN members m ON m.member_id = a.member_id
    LEFT JOIN events e ON e.event_id = a.event_id
"""


def day_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """Start of the calendar day (UTC) and start of the next one"""
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


class AttendanceService(BaseService):
    """Service for attendance operations"""

    def __init__(self):
        super().__init__("attendance_records")

    async def list_records(
        self,
        member_id: Optional[str] = None,
        event_id: Optional[str] = None,
        day: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 500
    ) -> ServiceResult:
        """
        List attendance newest first with member and event details joined in

        Args:
            member_id: Only this member's records
            event_id: Only records for this event
            day: Calendar date (YYYY-MM-DD); matches the whole day
            status: present, absent or excused
        """
        conditions = []
        params: List[Any] = []

        for column, value in (("a.member_id", member_id), ("a.event_id", event_id)):
            if value:
                if not is_uuid(value):
                    return ServiceResult(success=True, data=[], count=0)
                params.append(UUID(value))
                conditions.append(f"{column} = ${len(params)}")
        if status:
            params.append(status)
            conditions.append(f"a.status = ${len(params)}")
        if day:
            try:
                start, end = day_bounds(parse_timestamp(parse_date(day)))
            except ValueError:
                return failure(f"Invalid date: {day}", "INVALID_REQUEST")
            params.extend([start, end])
            conditions.append(f"a.date >= ${len(params) - 1} AND a.date < ${len(params)}")

        where_sql = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(min(limit, self.contract.limits.max_rows))
        query = f"{JOINED_SELECT}{where_sql} ORDER BY a.date DESC LIMIT ${len(params)}"
        return await self.fetch(query, *params)

    async def find_for_day(self, member_id: str, event_id: str, moment: datetime) -> ServiceResult:
        start, end = day_bounds(moment)
        return await self.read(
            filters={
                "member_id": member_id,
                "event_id": event_id,
                "date": {"op": "BETWEEN", "value": [start, end - timedelta(microseconds=1)]},
            },
            limit=1
        )

    async def create_record(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Create an attendance record.

        A second record for the same member, event and calendar day is rejected.
        """
        moment = parse_timestamp(data["date"])
        existing = await self.find_for_day(data["member_id"], data["event_id"], moment)
        if not existing.success:
            return existing
        if existing.data:
            return failure("Attendance record already exists for this member and event", "INVALID_REQUEST")

        record = dict(data)
        record["date"] = moment
        record.setdefault("checked_in_at", utc_now())
        result = await self.create(record)
        if result.success and record.get("status") == "present":
            await get_activity_service().record(
                data["member_id"], "event_attendance", "Attended an event", {"event_id": data["event_id"]}
            )
        return result

    async def check_in(self, member_id: str, event_id: str, now: Optional[datetime] = None) -> ServiceResult:
        """
        Check the caller in to an event or one occurrence of a recurring event

        Check-in is open from two hours before to two hours after the start.
        Recurring events allow one check-in per calendar day; other events
        allow one check-in in total.

        Returns:
            ServiceResult with the new record and the event name
        """
        now = now or utc_now()
        resolved = await get_events_service().resolve_occurrence(event_id)
        if not resolved.success:
            return resolved
        event = resolved.data[0]
        base_id = event.get("original_event_id") or event["event_id"]
        occurrence = parse_timestamp(event["date"])

        if not within_check_in_window(occurrence, now):
            return failure(
                "Check-in is only available 2 hours before to 2 hours after the event", "INVALID_REQUEST"
            )

        if event.get("is_recurring"):
            existing = await self.find_for_day(member_id, base_id, occurrence)
        else:
            existing = await self.read(filters={"member_id": member_id, "event_id": base_id}, limit=1)
        if not existing.success:
            return existing
        if existing.data:
            return failure("Already checked in to this event", "INVALID_REQUEST")

        result = await self.create({
            "member_id": member_id,
            "event_id": base_id,
            "date": occurrence,
            "status": "present",
            "checked_in_at": now,
        })
        if not result.success:
            return result

        logger.info(f"Member {member_id} checked in to {event['name']} ({event_id})")
        await get_activity_service().record(
            member_id, "event_attendance", f"Checked in to {event['name']}", {"event_id": base_id}
        )
        result.data[0]["event_name"] = event["name"]
        return result

    async def self_mark(self, member_id: str, event_id: str, now: Optional[datetime] = None) -> ServiceResult:
        """
        Self check-in from the mobile app.

        Idempotent per member, event and day: a second call returns the existing record.
        """
        now = now or utc_now()
        event = await get_events_service().get_by_id(event_id)
        if not event.success:
            if event.error_type == "RESOURCE_NOT_FOUND":
                return failure("Event not found", "RESOURCE_NOT_FOUND")
            return event
        if not event.data[0].get("allow_self_attendance", True):
            return failure("Self-attendance is not allowed for this event", "FORBIDDEN")

        member = await get_members_service().get_by_id(member_id)
        if not member.success:
            if member.error_type == "RESOURCE_NOT_FOUND":
                return failure("Member not found", "RESOURCE_NOT_FOUND")
            return member

        existing = await self.find_for_day(member_id, event_id, now)
        if not existing.success:
            return existing
        if existing.data:
            existing.data[0]["event_name"] = event.data[0]["name"]
            existing.data[0]["already_marked"] = True
            return existing

        result = await self.create({
            "member_id": member_id,
            "event_id": event_id,
            "date": now,
            "status": "present",
            "checked_in_at": now,
            "notes": "Self check-in via mobile app",
        })
        if result.success:
            await get_activity_service().record(
                member_id, "event_attendance", f"Checked in to {event.data[0]['name']}", {"event_id": event_id}
            )
            result.data[0]["event_name"] = event.data[0]["name"]
            result.data[0]["already_marked"] = False
        return result

    async def get_member_records(self, member_id: str, limit: int = 50) -> ServiceResult:
        return await self.list_records(member_id=member_id, limit=limit)

    async def present_dates(self, member_id: str) -> List[str]:
        result = await self.read(
            filters={"member_id": member_id, "status": "present"},
            order_by=[{"field": "date", "dir": "desc"}],
            limit=1000
        )
        if not result.success:
            logger.warning(f"Could not load attendance for member {member_id}: {result.error}")
            return []
        return [record["date"] for record in result.data]

    async def member_streak(self, member_id: str, now: Optional[datetime] = None) -> int:
        return calculate_attendance_streak(await self.present_dates(member_id), now)


# Global service instance
_attendance_service: Optional[AttendanceService] = None


def get_attendance_service() -> AttendanceService:
    """Get the global attendance service instance"""
    global _attendance_service
    if _attendance_service is None:
        _attendance_service = AttendanceService()
    return _attendance_service
