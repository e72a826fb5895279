"""
Tasks service - team tasks and their lifecycle
"""

import logging
from typing import Dict, Any, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.members_service import get_members_service
from services.teams_service import get_teams_service
from services.activity_service import get_activity_service
from utils.helpers import utc_now

logger = logging.getLogger(__name__)


def apply_status_rules(task: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Derive lifecycle stamps from an update.

    Completing a task stamps completed_at. Giving an open task an assignee
    moves it to "assigned" and stamps pickup_date.
    """
    updates = dict(updates)
    now = utc_now()

    if updates.get("status") == "completed" and task.get("status") != "completed":
        updates["completed_at"] = now

    if updates.get("assignee_id") and task.get("status") == "open" and "status" not in updates:
        updates["status"] = "assigned"
        updates["pickup_date"] = now
    elif updates.get("assignee_id") and updates.get("status") == "assigned" and not task.get("pickup_date"):
        updates["pickup_date"] = now

    return updates


class TasksService(BaseService):
    """Service for task operations"""

    def __init__(self):
        super().__init__("tasks")

    async def list_tasks(
        self,
        team_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        status: Optional[str] = None,
        is_public: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 100
    ) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if team_id:
            filters["team_id"] = team_id
        if assignee_id:
            filters["assignee_id"] = assignee_id
        if status:
            filters["status"] = status
        if is_public is not None:
            filters["is_public"] = is_public

        return await self.read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=limit
        )

    async def create_task(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Create a task on behalf of a team lead or admin

        Args:
            data: Task fields; title, description, team_id and creator_id are required

        Returns:
            ServiceResult with the created task. RESOURCE_NOT_FOUND when the team
            or creator is unknown, FORBIDDEN when the creator may not create tasks
            for the team.
        """
        team = await get_teams_service().get_by_id(data["team_id"])
        if not team.success:
            if team.error_type == "RESOURCE_NOT_FOUND":
                return failure("Team not found", "RESOURCE_NOT_FOUND")
            return team

        creator = await get_members_service().get_by_id(data["creator_id"])
        if not creator.success:
            if creator.error_type == "RESOURCE_NOT_FOUND":
                return failure("Creator not found", "RESOURCE_NOT_FOUND")
            return creator

        if not creator.data[0].get("is_admin") and team.data[0].get("team_lead_id") != data["creator_id"]:
            return failure("Only team leaders and admins can create tasks", "FORBIDDEN")

        task = {key: value for key, value in data.items() if value is not None}
        task.setdefault("status", "open")
        if task.get("assignee_id") and task["status"] == "open":
            task["status"] = "assigned"
            task["pickup_date"] = utc_now()

        logger.info(f"Creating task '{task['title']}' for team {data['team_id']}")
        return await self.create(task)

    async def can_modify(self, task: Dict[str, Any], member_id: Optional[str], include_assignee: bool = True) -> bool:
        """Admins, the creator, the team lead and (for updates) the assignee may change a task"""
        if not member_id:
            return False
        if task.get("creator_id") == member_id:
            return True
        if include_assignee and task.get("assignee_id") == member_id:
            return True

        member = await get_members_service().get_by_id(member_id)
        if member.success and member.data[0].get("is_admin"):
            return True
        team = await get_teams_service().get_by_id(task["team_id"])
        return team.success and team.data[0].get("team_lead_id") == member_id

    async def update_task(self, task_id: str, updates: Dict[str, Any]) -> ServiceResult:
        current = await self.get_by_id(task_id)
        if not current.success:
            return current
        task = current.data[0]

        result = await self.update(task_id, apply_status_rules(task, updates))
        if result.success and result.data[0].get("status") == "completed" and task.get("status") != "completed":
            await get_activity_service().record(
                result.data[0].get("assignee_id"),
                "task_completed",
                f"Completed task: {task['title']}",
                {"task_id": task_id, "team_id": task["team_id"]}
            )
        return result

    async def get_member_tasks(self, member_id: str) -> ServiceResult:
        return await self.read(
            filters={"assignee_id": member_id},
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=100
        )


# Global service instance
_tasks_service: Optional[TasksService] = None


def get_tasks_service() -> TasksService:
    """Get the global tasks service instance"""
    global _tasks_service
    if _tasks_service is None:
        _tasks_service = TasksService()
    return _tasks_service
