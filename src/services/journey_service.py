"""
Journey service - per-member dashboards combining attendance, giving, tasks and communities
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, List, Optional

from services.base_service import ServiceResult, failure
from services.members_service import get_members_service
from services.attendance_service import get_attendance_service
from services.giving_service import get_giving_service, counts_toward_total
from services.tasks_service import get_tasks_service
from services.teams_service import get_teams_service
from services.communities_service import get_communities_service
from services.events_service import get_events_service
from services.activity_service import get_activity_service
from services.journey import calculate_attendance_streak, merge_recent_activities
from utils.helpers import parse_timestamp, utc_now

logger = logging.getLogger(__name__)

RECENT_STATS_ACTIVITIES = 10
JOURNEY_HISTORY_LIMIT = 20
MOBILE_FEED_LIMIT = 5


def _money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01")))


def _in_month(value: Any, now: datetime) -> bool:
    moment = parse_timestamp(value)
    return moment is not None and moment.year == now.year and moment.month == now.month


def build_member_stats(
    member: Dict[str, Any],
    attendance: List[Dict[str, Any]],
    givings: List[Dict[str, Any]],
    now: datetime
) -> Dict[str, Any]:
    """
    Dashboard numbers for one member.

    attendance and givings are the member's full record lists; only present
    attendance and completed giving count.
    """
    present = [record for record in attendance if record.get("status") == "present"]
    completed = [record for record in givings if counts_toward_total(record)]
    total_giving = sum((Decimal(str(g["amount"])) for g in completed), Decimal("0"))

    recent = []
    for record in present:
        recent.append({
            "type": "attendance",
            "description": f"Attended {record.get('event_name') or 'an event'}",
            "date": record["date"],
        })
    for giving in completed:
        recent.append({
            "type": "giving",
            "description": f"Gave {giving.get('category', 'offering').replace('_', ' ')}",
            "date": giving["date"],
            "amount": giving["amount"],
        })
    recent.sort(key=lambda item: parse_timestamp(item["date"]), reverse=True)

    month_giving = sum(
        (Decimal(str(g["amount"])) for g in completed if _in_month(g["date"], now)), Decimal("0")
    )
    return {
        "attendance_streak": calculate_attendance_streak([r["date"] for r in present], now),
        "total_attendance": len(present),
        "total_giving": _money(total_giving),
        "communities_count": len(member.get("community_ids") or []),
        "member_since": member.get("date_joined"),
        "last_activity": member.get("last_activity_date"),
        "recent_activities": recent[:RECENT_STATS_ACTIVITIES],
        "this_month": {
            "attendance": len([r for r in present if _in_month(r["date"], now)]),
            "giving": _money(month_giving),
        },
    }


class JourneyService:
    """Read-side aggregation over the member-facing services"""

    async def _records(self, member_id: str):
        attendance = await get_attendance_service().list_records(member_id=member_id, limit=1000)
        if not attendance.success:
            return attendance, None
        givings = await get_giving_service().get_member_givings(member_id)
        if not givings.success:
            return givings, None
        return attendance, givings

    async def member_stats(self, member: Dict[str, Any], now: Optional[datetime] = None) -> ServiceResult:
        now = now or utc_now()
        attendance, givings = await self._records(member["member_id"])
        if givings is None:
            return attendance
        stats = build_member_stats(member, attendance.data, givings.data, now)
        return ServiceResult(success=True, data=[stats], count=1)

    async def member_journey(self, member_id: str, now: Optional[datetime] = None) -> ServiceResult:
        """
        Full journey for one member

        Also writes the refreshed streak, attendance count, giving total and
        last activity date back onto the member.

        Returns:
            ServiceResult whose single item has member, team, communities, stats,
            activities, attendance_records, giving_records and assigned_tasks
        """
        now = now or utc_now()
        members = get_members_service()
        member = await members.get_by_id(member_id)
        if not member.success:
            if member.error_type == "RESOURCE_NOT_FOUND":
                return failure("Member not found", "RESOURCE_NOT_FOUND")
            return member
        profile = member.data[0]

        attendance, givings = await self._records(profile["member_id"])
        if givings is None:
            return attendance
        tasks = await get_tasks_service().get_member_tasks(profile["member_id"])
        if not tasks.success:
            return tasks
        communities = await get_communities_service().get_member_communities(profile["member_id"])
        activities = await get_activity_service().list_activities(member_id=profile["member_id"])

        team = None
        if profile.get("team_id"):
            team_result = await get_teams_service().get_by_id(profile["team_id"])
            team = team_result.first

        stats = build_member_stats(profile, attendance.data, givings.data, now)
        community_list = communities.data if communities.success else []
        stats.update({
            "communities_count": len(community_list),
            "tasks_assigned": len(tasks.data),
            "tasks_completed": len([t for t in tasks.data if t.get("status") == "completed"]),
            "joined_date": profile.get("date_joined"),
        })

        refreshed = await members.refresh_stats(
            profile["member_id"],
            attendance_streak=stats["attendance_streak"],
            total_attendance=stats["total_attendance"],
            total_giving=stats["total_giving"],
            last_activity_date=now
        )
        if not refreshed.success:
            logger.warning(f"Could not refresh cached stats for member {member_id}: {refreshed.error}")

        return ServiceResult(success=True, data=[{
            "member": refreshed.first or profile,
            "team": team,
            "communities": community_list,
            "stats": stats,
            "activities": activities.data if activities.success else [],
            "attendance_records": attendance.data[:JOURNEY_HISTORY_LIMIT],
            "giving_records": givings.data[:JOURNEY_HISTORY_LIMIT],
            "assigned_tasks": tasks.data,
        }], count=1)

    async def mobile_journey(self, member: Dict[str, Any], now: Optional[datetime] = None) -> ServiceResult:
        """Stats, a short activity feed and the next few events for the mobile home screen"""
        now = now or utc_now()
        member_id = member["member_id"]
        attendance, givings = await self._records(member_id)
        if givings is None:
            return attendance
        tasks = await get_tasks_service().get_member_tasks(member_id)
        if not tasks.success:
            return tasks

        present = [r for r in attendance.data if r.get("status") == "present"]
        completed_givings = [g for g in givings.data if counts_toward_total(g)]
        stats = build_member_stats(member, attendance.data, givings.data, now)

        await get_members_service().refresh_stats(
            member_id,
            attendance_streak=stats["attendance_streak"],
            total_attendance=stats["total_attendance"],
            total_giving=stats["total_giving"]
        )

        return ServiceResult(success=True, data=[{
            "stats": {
                "attendance_streak": stats["attendance_streak"],
                "total_attendance": stats["total_attendance"],
                "total_giving": stats["total_giving"],
                "communities_count": stats["communities_count"],
                "tasks_assigned": len(tasks.data),
                "tasks_completed": len([t for t in tasks.data if t.get("status") == "completed"]),
            },
            "recent_activities": merge_recent_activities(
                present, tasks.data, completed_givings, limit=MOBILE_FEED_LIMIT
            ),
            "upcoming_events": await get_events_service().upcoming_events(limit=MOBILE_FEED_LIMIT, now=now),
        }], count=1)

    async def first_timers_journey(self, now: Optional[datetime] = None) -> ServiceResult:
        """First-timers with a short journey summary each, for the admin overview"""
        now = now or utc_now()
        first_timers = await get_members_service().get_first_timers()
        if not first_timers.success:
            return first_timers

        attendance_service = get_attendance_service()
        overview = []
        for member in first_timers.data:
            dates = await attendance_service.present_dates(member["member_id"])
            overview.append(dict(
                member,
                journey={
                    "total_attendance": len(dates),
                    "attendance_streak": calculate_attendance_streak(dates, now),
                    "last_attended": dates[0] if dates else None,
                    "has_team": bool(member.get("team_id")),
                    "communities_count": len(member.get("community_ids") or []),
                },
            ))
        return ServiceResult(success=True, data=overview, count=len(overview))


# Global service instance
_journey_service: Optional[JourneyService] = None


def get_journey_service() -> JourneyService:
    """Get the global journey service instance"""
    global _journey_service
    if _journey_service is None:
        _journey_service = JourneyService()
    return _journey_service
