"""
User activity log - a timeline of what members do in the app
"""

import logging
from typing import Dict, Any, Optional

from services.base_service import BaseService, ServiceResult

logger = logging.getLogger(__name__)


class ActivityService(BaseService):
    """Service for the member activity log"""

    def __init__(self):
        super().__init__("user_activities")

    async def record(
        self,
        member_id: Optional[str],
        activity_type: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ServiceResult:
        """
        Append an entry to a member's activity log.

        Logging an activity never fails the calling operation: failures are
        logged and returned.
        """
        if not member_id:
            return ServiceResult(success=True, data=[], count=0)

        result = await self.create({
            "member_id": member_id,
            "activity_type": activity_type,
            "description": description,
            "metadata": metadata or {},
        })
        if not result.success:
            logger.warning(f"Failed to record {activity_type} activity for member {member_id}: {result.error}")
        return result

    async def list_activities(
        self,
        member_id: Optional[str] = None,
        activity_type: Optional[str] = None,
        limit: int = 50
    ) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if member_id:
            filters["member_id"] = member_id
        if activity_type:
            filters["activity_type"] = activity_type
        return await self.read(
            filters=filters,
            order_by=[{"field": "timestamp", "dir": "desc"}],
            limit=limit
        )


# Global service instance
_activity_service: Optional[ActivityService] = None


def get_activity_service() -> ActivityService:
    """Get the global activity service instance"""
    global _activity_service
    if _activity_service is None:
        _activity_service = ActivityService()
    return _activity_service
