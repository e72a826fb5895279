"""
Maintenance service - consistency checks for the user <-> member links
"""

import logging
from typing import Dict, Any, Optional

from services.base_service import BaseService, ServiceResult

logger = logging.getLogger(__name__)

DANGLING_USER_LINKS = """
    SELECT u.user_id, u.email, u.member_id
    FROM users u
    WHERE u.member_id IS NOT NULL
      AND NOT EXISTS (SELECT 1 FROM members m WHERE m.member_id = u.member_id)
"""

DANGLING_MEMBER_LINKS = """
    SELECT m.member_id, m.email, m.user_id
    FROM members m
    WHERE m.user_id IS NOT NULL
      AND NOT EXISTS (SELECT 1 FROM users u WHERE u.user_id = m.user_id)
"""

ONE_WAY_LINKS = """
    SELECT u.user_id, u.email, u.member_id, m.user_id AS member_user_id
    FROM users u
    JOIN members m ON m.member_id = u.member_id
    WHERE m.user_id IS DISTINCT FROM u.user_id
    UNION ALL
    SELECT u.user_id, u.email, u.member_id, m.user_id AS member_user_id
    FROM members m
    JOIN users u ON u.user_id = m.user_id
    WHERE u.member_id IS DISTINCT FROM m.member_id
"""

UNLINKED_MATCHING_EMAIL = """
    SELECT u.user_id, m.member_id, u.email
    FROM users u
    JOIN members m ON m.email = u.email
    WHERE u.member_id IS NULL AND m.user_id IS NULL
"""


class MaintenanceService(BaseService):
    """Reports and repairs broken user/member relationships"""

    def __init__(self):
        super().__init__("users")

    async def relationship_report(self) -> ServiceResult:
        """
        Find broken links between accounts and member profiles

        Returns:
            ServiceResult whose single item lists dangling user links, dangling
            member links, one-way links, unlinked pairs sharing an email and a
            summary of counts
        """
        report: Dict[str, Any] = {}
        for key, query in (
            ("dangling_user_links", DANGLING_USER_LINKS),
            ("dangling_member_links", DANGLING_MEMBER_LINKS),
            ("one_way_links", ONE_WAY_LINKS),
            ("linkable_by_email", UNLINKED_MATCHING_EMAIL),
        ):
            result = await self.fetch(query)
            if not result.success:
                return result
            report[key] = result.data

        report["summary"] = {key: len(rows) for key, rows in report.items()}
        report["summary"]["healthy"] = not any(report["summary"].values())
        return ServiceResult(success=True, data=[report], count=1)

    async def repair_relationships(self) -> ServiceResult:
        """
        Fix the problems relationship_report finds

        Dangling references are cleared, one-way links are completed from the
        user side and unlinked pairs with the same email are linked both ways.

        Returns:
            ServiceResult whose single item holds the number of rows touched per fix
        """
        steps = (
            ("cleared_user_links",
             "UPDATE users u SET member_id = NULL, updated_at = NOW() "
             "WHERE u.member_id IS NOT NULL "
             "AND NOT EXISTS (SELECT 1 FROM members m WHERE m.member_id = u.member_id)"),
            ("cleared_member_links",
             "UPDATE members m SET user_id = NULL, updated_at = NOW() "
             "WHERE m.user_id IS NOT NULL "
             "AND NOT EXISTS (SELECT 1 FROM users u WHERE u.user_id = m.user_id)"),
            ("completed_member_links",
             "UPDATE members m SET user_id = u.user_id, updated_at = NOW() "
             "FROM users u WHERE u.member_id = m.member_id AND m.user_id IS DISTINCT FROM u.user_id"),
            ("completed_user_links",
             "UPDATE users u SET member_id = m.member_id, updated_at = NOW() "
             "FROM members m WHERE m.user_id = u.user_id AND u.member_id IS NULL"),
            ("linked_users_by_email",
             "UPDATE users u SET member_id = m.member_id, updated_at = NOW() "
             "FROM members m WHERE m.email = u.email AND u.member_id IS NULL AND m.user_id IS NULL"),
            ("linked_members_by_email",
             "UPDATE members m SET user_id = u.user_id, updated_at = NOW() "
             "FROM users u WHERE u.member_id = m.member_id AND m.user_id IS NULL"),
        )

        counts: Dict[str, int] = {}
        for key, statement in steps:
            result = await self.execute(statement)
            if not result.success:
                return result
            counts[key] = result.count

        logger.info(f"Relationship repair finished: {counts}")
        return ServiceResult(success=True, data=[counts], count=sum(counts.values()))


# Global service instance
_maintenance_service: Optional[MaintenanceService] = None


def get_maintenance_service() -> MaintenanceService:
    """Get the global maintenance service instance"""
    global _maintenance_service
    if _maintenance_service is None:
        _maintenance_service = MaintenanceService()
    return _maintenance_service
