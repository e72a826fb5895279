"""
Anniversaries service - birthdays and wedding anniversaries of members
"""

import calendar
import logging
from datetime import date
from typing import Dict, Any, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.members_service import get_members_service
from utils.helpers import parse_date, utc_now, full_name

logger = logging.getLogger(__name__)


def next_occurrence(anniversary: date, today: date) -> date:
    """Next calendar date on or after today that falls on the anniversary (Feb 29 -> Feb 28)"""
    def in_year(year: int) -> date:
        if anniversary.month == 2 and anniversary.day == 29 and not calendar.isleap(year):
            return date(year, 2, 28)
        return anniversary.replace(year=year)

    candidate = in_year(today.year)
    if candidate < today:
        candidate = in_year(today.year + 1)
    return candidate


def days_until(anniversary: date, today: date) -> int:
    return (next_occurrence(anniversary, today) - today).days


def years_since(anniversary: date, on: date) -> int:
    return on.year - anniversary.year


def annotate(record: Dict[str, Any], today: date, member: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Add next_occurrence, days_until, years and the member's name to an anniversary"""
    original = parse_date(record["date"])
    upcoming = next_occurrence(original, today)
    annotated = dict(record)
    annotated["next_occurrence"] = upcoming.isoformat()
    annotated["days_until"] = (upcoming - today).days
    annotated["years"] = years_since(original, upcoming)
    if member is not None:
        annotated["member_name"] = full_name(member)
        annotated["member_email"] = member.get("email")
    return annotated


class AnniversariesService(BaseService):
    """Service for anniversary operations"""

    def __init__(self):
        super().__init__("anniversaries")

    async def list_anniversaries(
        self,
        anniversary_type: Optional[str] = None,
        member_id: Optional[str] = None,
        upcoming_days: Optional[int] = None,
        today: Optional[date] = None
    ) -> ServiceResult:
        """
        List anniversaries with their next occurrence

        With upcoming_days only anniversaries falling within that many days are
        returned, soonest first. Otherwise they are ordered by calendar date.
        """
        today = today or utc_now().date()
        filters: Dict[str, Any] = {}
        if anniversary_type:
            filters["type"] = anniversary_type
        if member_id:
            filters["member_id"] = member_id

        result = await self.read(filters=filters, order_by=[{"field": "date", "dir": "asc"}], limit=1000)
        if not result.success:
            return result

        members = await get_members_service().get_members_by_ids(
            list({record["member_id"] for record in result.data})
        )
        by_id = {m["member_id"]: m for m in members.data} if members.success else {}
        records = [annotate(record, today, by_id.get(record["member_id"])) for record in result.data]

        if upcoming_days is not None:
            records = [r for r in records if r["days_until"] <= upcoming_days]
            records.sort(key=lambda r: r["days_until"])
        return ServiceResult(success=True, data=records, count=len(records))

    async def create_anniversary(self, data: Dict[str, Any]) -> ServiceResult:
        member = await get_members_service().get_by_id(data["member_id"])
        if not member.success:
            if member.error_type == "RESOURCE_NOT_FOUND":
                return failure("Member not found", "RESOURCE_NOT_FOUND")
            return member
        result = await self.create({key: value for key, value in data.items() if value is not None})
        if not result.success and result.error_type == "CONFLICT":
            return failure(f"Member already has a {data['type']} anniversary", "CONFLICT")
        return result

    async def seed_from_members(self) -> ServiceResult:
        """
        Create birthday and wedding anniversaries from member profiles

        Only members whose date is set and who have no anniversary of that type
        yet get a new record.

        Returns:
            ServiceResult whose count is the number of anniversaries created
        """
        created = 0
        for anniversary_type, column in (("birthday", "date_of_birth"), ("wedding", "wedding_anniversary")):
            inserted = await self.execute(
                f"""
                INSERT INTO anniversaries (member_id, type, date, recurring, notes)
                SELECT m.member_id, '{anniversary_type}', m.{column}, TRUE, 'Imported from member profile'
                FROM members m
                WHERE m.{column} IS NOT NULL
                  AND NOT EXISTS (
                      SELECT 1 FROM anniversaries a
                      WHERE a.member_id = m.member_id AND a.type = '{anniversary_type}'
                  )
                """
            )
            if not inserted.success:
                return inserted
            created += inserted.count

        logger.info(f"Seeded {created} anniversaries from member profiles")
        return ServiceResult(success=True, data=[], count=created)


# Global service instance
_anniversaries_service: Optional[AnniversariesService] = None


def get_anniversaries_service() -> AnniversariesService:
    """Get the global anniversaries service instance"""
    global _anniversaries_service
    if _anniversaries_service is None:
        _anniversaries_service = AnniversariesService()
    return _anniversaries_service
