"""
Members service - congregation records, CSV import and cached journey stats
"""

import logging
from typing import Dict, Any, List, Optional

from services.base_service import BaseService, ServiceResult, failure, is_uuid
from utils.csv_tools import parse_member_import

logger = logging.getLogger(__name__)


class MembersService(BaseService):
    """Service for member operations"""

    def __init__(self):
        super().__init__("members")

    async def list_members(
        self,
        search: Optional[str] = None,
        team_id: Optional[str] = None,
        is_first_timer: Optional[bool] = None,
        page: int = 1,
        limit: int = 20
    ) -> ServiceResult:
        """
        List members newest first

        Args:
            search: Case-insensitive match on first name, last name or email
            team_id: Only members of this team
            is_first_timer: Only (non-)first-timers
            page: 1-based page number
            limit: Page size

        Returns:
            ServiceResult with the page of members; page_info carries the total
        """
        filters: Dict[str, Any] = {}
        if team_id:
            filters["team_id"] = team_id
        if is_first_timer is not None:
            filters["is_first_timer"] = is_first_timer

        return await self.read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=limit,
            offset=(page - 1) * limit,
            with_total=True
        )

    async def get_member_by_email(self, email: str) -> ServiceResult:
        result = await self.read(filters={"email": email.strip().lower()}, limit=1)
        if result.success and not result.data:
            return failure("Member not found", "RESOURCE_NOT_FOUND")
        return result

    async def email_exists(self, email: str) -> bool:
        result = await self.get_member_by_email(email)
        return result.success

    async def create_member(self, data: Dict[str, Any]) -> ServiceResult:
        """Create a member; a duplicate email is a CONFLICT"""
        data = dict(data)
        data["email"] = data["email"].strip().lower()

        if await self.email_exists(data["email"]):
            return failure("A member with this email already exists", "CONFLICT")

        logger.info(f"Creating member {data['email']}")
        result = await self.create(data)
        if not result.success and result.error_type == "CONFLICT":
            return failure("A member with this email already exists", "CONFLICT")
        return result

    async def update_member(self, member_id: str, data: Dict[str, Any]) -> ServiceResult:
        if data.get("email"):
            data = dict(data, email=data["email"].strip().lower())
        result = await self.update(member_id, data)
        if not result.success and result.error_type == "CONFLICT":
            return failure("A member with this email already exists", "CONFLICT")
        return result

    async def delete_member(self, member_id: str) -> ServiceResult:
        """Delete a member and unlink any user account pointing at it"""
        result = await self.delete(member_id)
        if not result.success:
            return result

        unlinked = await self.execute(
            "UPDATE users SET member_id = NULL, updated_at = NOW() WHERE member_id = $1",
            result.data[0]["member_id"]
        )
        if unlinked.count:
            logger.info(f"Unlinked {unlinked.count} user account(s) from deleted member {member_id}")
        await self.execute(
            "UPDATE teams SET member_ids = array_remove(member_ids, $1::uuid), updated_at = NOW() "
            "WHERE $1::uuid = ANY(member_ids)",
            result.data[0]["member_id"]
        )
        await self.execute(
            "UPDATE communities SET member_ids = array_remove(member_ids, $1::uuid), updated_at = NOW() "
            "WHERE $1::uuid = ANY(member_ids)",
            result.data[0]["member_id"]
        )
        return result

    async def import_members(self, content: str) -> Dict[str, Any]:
        """
        Import members from CSV text

        Each row is validated and inserted independently; failures are reported
        per row as "Row N: reason" with the header counted as row 1.

        Returns:
            Dict with total, successful, failed and errors
        """
        valid_rows, errors = parse_member_import(content)
        total = len(valid_rows) + len(errors)
        successful = 0

        for row_number, record in valid_rows:
            result = await self.create_member(record)
            if result.success:
                successful += 1
            else:
                errors.append(f"Row {row_number}: {result.error}")

        errors.sort(key=_row_number)
        logger.info(f"Member import finished: {successful}/{total} rows imported")
        return {
            "total": total,
            "successful": successful,
            "failed": total - successful,
            "errors": errors,
        }

    async def get_members_by_ids(self, member_ids: List[str]) -> ServiceResult:
        ids = [member_id for member_id in dict.fromkeys(member_ids) if is_uuid(member_id)]
        batch_size = self.contract.limits.max_rows
        members: List[Dict[str, Any]] = []
        for start in range(0, len(ids), batch_size):
            batch = ids[start:start + batch_size]
            result = await self.read(filters={"member_id": {"op": "IN", "value": batch}}, limit=len(batch))
            if not result.success:
                return result
            members.extend(result.data)
        return ServiceResult(success=True, data=members, count=len(members))

    async def get_first_timers(self, limit: int = 100) -> ServiceResult:
        return await self.read(
            filters={"is_first_timer": True},
            order_by=[{"field": "date_joined", "dir": "desc"}],
            limit=limit
        )

    async def refresh_stats(
        self,
        member_id: str,
        attendance_streak: int,
        total_attendance: int,
        total_giving: float,
        last_activity_date: Optional[str] = None
    ) -> ServiceResult:
        """Persist the cached journey numbers shown on dashboards"""
        updates: Dict[str, Any] = {
            "attendance_streak": attendance_streak,
            "total_attendance": total_attendance,
            "total_giving": total_giving,
        }
        if last_activity_date:
            updates["last_activity_date"] = last_activity_date
        return await self.update(member_id, updates)

    async def adjust_total_giving(self, member_id: str, delta) -> ServiceResult:
        """Add (or subtract) an amount from the member's running giving total"""
        return await self.fetch(
            "UPDATE members SET total_giving = GREATEST(total_giving + $1, 0), updated_at = NOW() "
            "WHERE member_id = $2 RETURNING member_id, total_giving",
            delta, member_id
        )


def _row_number(error: str) -> int:
    try:
        return int(error.split(":", 1)[0].replace("Row", "").strip())
    except ValueError:
        return 0


# Global service instance
_members_service: Optional[MembersService] = None


def get_members_service() -> MembersService:
    """Get the global members service instance"""
    global _members_service
    if _members_service is None:
        _members_service = MembersService()
    return _members_service
