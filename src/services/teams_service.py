"""
Teams service - ministry teams and their membership
"""

import logging
from typing import Dict, Any, List, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.members_service import get_members_service

logger = logging.getLogger(__name__)


class TeamsService(BaseService):
    """Service for team operations"""

    def __init__(self):
        super().__init__("teams")

    async def list_teams(self, search: Optional[str] = None, limit: int = 100) -> ServiceResult:
        return await self.read(
            search=search,
            order_by=[{"field": "name", "dir": "asc"}],
            limit=limit
        )

    async def create_team(
        self,
        name: str,
        description: str,
        team_lead_id: str,
        member_ids: Optional[List[str]] = None
    ) -> ServiceResult:
        """
        Create a team led by an existing member

        The lead is always part of the team and is flagged as a team lead.

        Returns:
            ServiceResult with the created team, RESOURCE_NOT_FOUND when the lead is unknown
        """
        members_service = get_members_service()
        lead = await members_service.get_by_id(team_lead_id)
        if not lead.success:
            if lead.error_type == "RESOURCE_NOT_FOUND":
                return failure("Team lead not found", "RESOURCE_NOT_FOUND")
            return lead

        ids = [team_lead_id] + [m for m in (member_ids or []) if m != team_lead_id]
        result = await self.create({
            "name": name,
            "description": description,
            "team_lead_id": team_lead_id,
            "member_ids": ids,
        })
        if not result.success:
            return result

        team_id = result.data[0]["team_id"]
        for member_id in ids:
            updates: Dict[str, Any] = {"team_id": team_id}
            if member_id == team_lead_id:
                updates["is_team_lead"] = True
            synced = await members_service.update(member_id, updates)
            if not synced.success:
                logger.warning(f"Could not attach member {member_id} to team {team_id}: {synced.error}")

        logger.info(f"Created team '{name}' ({team_id}) with {len(ids)} member(s)")
        return result

    async def update_team(self, team_id: str, data: Dict[str, Any]) -> ServiceResult:
        new_lead = data.get("team_lead_id")
        if new_lead:
            lead = await get_members_service().get_by_id(new_lead)
            if not lead.success:
                if lead.error_type == "RESOURCE_NOT_FOUND":
                    return failure("Team lead not found", "RESOURCE_NOT_FOUND")
                return lead

        result = await self.update(team_id, data)
        if result.success and new_lead:
            await self.add_to_array(team_id, "member_ids", new_lead)
            await get_members_service().update(new_lead, {"team_id": team_id, "is_team_lead": True})
        return result

    async def delete_team(self, team_id: str) -> ServiceResult:
        """Delete a team; its members are detached and its tasks go with it"""
        result = await self.delete(team_id)
        if result.success:
            await self.execute(
                "UPDATE members SET team_id = NULL, is_team_lead = FALSE, updated_at = NOW() "
                "WHERE team_id = $1",
                result.data[0]["team_id"]
            )
        return result

    async def get_team_members(self, team_id: str) -> ServiceResult:
        team = await self.get_by_id(team_id)
        if not team.success:
            return team
        return await get_members_service().get_members_by_ids(team.data[0].get("member_ids") or [])

    async def add_member(self, team_id: str, member_id: str) -> ServiceResult:
        """Add a member to a team, moving them out of any previous team"""
        members_service = get_members_service()
        team = await self.get_by_id(team_id)
        if not team.success:
            return team
        member = await members_service.get_by_id(member_id)
        if not member.success:
            if member.error_type == "RESOURCE_NOT_FOUND":
                return failure("Member not found", "RESOURCE_NOT_FOUND")
            return member

        previous_team = member.data[0].get("team_id")
        if previous_team and previous_team != team_id:
            await self.remove_from_array(previous_team, "member_ids", member_id)

        result = await self.add_to_array(team_id, "member_ids", member_id)
        if result.success:
            await members_service.update(member_id, {"team_id": team_id})
        return result

    async def remove_member(self, team_id: str, member_id: str) -> ServiceResult:
        team = await self.get_by_id(team_id)
        if not team.success:
            return team
        if team.data[0].get("team_lead_id") == member_id:
            return failure("Cannot remove the team lead from the team", "INVALID_REQUEST")

        result = await self.remove_from_array(team_id, "member_ids", member_id)
        if result.success:
            await get_members_service().update(member_id, {"team_id": None})
        return result

    async def get_team_for_member(self, member_id: str) -> ServiceResult:
        """Find the team a member belongs to"""
        result = await self.read(filters={"member_ids": {"op": "ANY", "value": member_id}}, limit=1)
        if result.success and not result.data:
            return failure("You are not part of any team", "RESOURCE_NOT_FOUND")
        return result


# Global service instance
_teams_service: Optional[TeamsService] = None


def get_teams_service() -> TeamsService:
    """Get the global teams service instance"""
    global _teams_service
    if _teams_service is None:
        _teams_service = TeamsService()
    return _teams_service
