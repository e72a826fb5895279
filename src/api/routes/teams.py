"""
Team API routes - teams, their members and team-scoped tasks
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.team import TeamCreateRequest, TeamUpdateRequest, TeamMemberRequest, TaskCreateRequest, TaskUpdateRequest
from models.enums import TaskStatus
from services.teams_service import get_teams_service
from services.tasks_service import get_tasks_service
from services.members_service import get_members_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


async def _load_team(team_id: str):
    result = await get_teams_service().get_by_id(team_id)
    raise_for_result(result, not_found="Team not found")
    return result.data[0]


async def _load_team_task(team_id: str, task_id: str):
    result = await get_tasks_service().get_by_id(task_id)
    raise_for_result(result, not_found="Task not found")
    task = result.data[0]
    if task["team_id"] != team_id:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _require_team_access(user: AuthContext, team) -> None:
    """Staff see every team; anyone else only a team they belong to"""
    if user.has_permission("teams.view"):
        return
    if not user.member_id or user.member_id not in (team.get("member_ids") or []):
        raise HTTPException(status_code=403, detail="You are not a member of this team")


@router.get("")
async def list_teams(
    search: Optional[str] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("teams.view"))
):
    try:
        result = await get_teams_service().list_teams(search=search)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list teams: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_team(
    request: TeamCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("teams.create"))
):
    if not request.name or not request.description or not request.team_lead_id:
        raise HTTPException(status_code=400, detail="Name, description, and team lead are required")

    try:
        result = await get_teams_service().create_team(
            name=request.name.strip(),
            description=request.description.strip(),
            team_lead_id=request.team_lead_id,
            member_ids=request.member_ids
        )
        raise_for_result(result)
        return {"success": True, "message": "Team created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create team: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/my-team")
async def get_my_team(user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    """The caller's team with its members and tasks"""
    member_id = require_member_profile(user)
    try:
        teams_service = get_teams_service()
        result = await teams_service.get_team_for_member(member_id)
        raise_for_result(result, not_found="You are not part of any team")
        team = result.data[0]

        members = await get_members_service().get_members_by_ids(team.get("member_ids") or [])
        tasks = await get_tasks_service().list_tasks(team_id=team["team_id"])
        return {
            "success": True,
            "data": dict(
                team,
                members=members.data if members.success else [],
                tasks=tasks.data if tasks.success else [],
                is_lead=team.get("team_lead_id") == member_id,
            ),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load caller's team: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{team_id}")
async def get_team(team_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    try:
        team = await _load_team(team_id)
        _require_team_access(user, team)
        return {"success": True, "data": team}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get team: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{team_id}")
async def update_team(
    team_id: str,
    request: TeamUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("teams.edit"))
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_teams_service().update_team(team_id, updates)
        raise_for_result(result, not_found="Team not found")
        return {"success": True, "message": "Team updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update team: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{team_id}")
async def delete_team(team_id: str, _: AuthContext = Depends(AuthConfig.require("teams.delete"))):
    try:
        result = await get_teams_service().delete_team(team_id)
        raise_for_result(result, not_found="Team not found")
        return {"success": True, "message": "Team deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete team: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{team_id}/members")
async def list_team_members(team_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    try:
        team = await _load_team(team_id)
        _require_team_access(user, team)
        result = await get_members_service().get_members_by_ids(team.get("member_ids") or [])
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list team members: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{team_id}/members")
async def add_team_member(
    team_id: str,
    request: TeamMemberRequest,
    _: AuthContext = Depends(AuthConfig.require("teams.edit"))
):
    try:
        result = await get_teams_service().add_member(team_id, request.member_id)
        raise_for_result(result, not_found=result.error or "Team not found")
        return {"success": True, "message": "Member added to team", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to add team member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{team_id}/members/{member_id}")
async def remove_team_member(
    team_id: str,
    member_id: str,
    _: AuthContext = Depends(AuthConfig.require("teams.edit"))
):
    try:
        result = await get_teams_service().remove_member(team_id, member_id)
        raise_for_result(result, not_found="Team not found")
        return {"success": True, "message": "Member removed from team", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to remove team member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{team_id}/tasks")
async def list_team_tasks(
    team_id: str,
    status: Optional[TaskStatus] = Query(None),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        team = await _load_team(team_id)
        _require_team_access(user, team)
        result = await get_tasks_service().list_tasks(team_id=team_id, status=status.value if status else None)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list team tasks: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{team_id}/tasks", status_code=201)
async def create_team_task(
    team_id: str,
    request: TaskCreateRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Team leads (and admins) create tasks for their team"""
    if not request.title or not request.description:
        raise HTTPException(status_code=400, detail="Title and description are required")

    creator_id = request.creator_id if user.is_staff and request.creator_id else require_member_profile(user)
    try:
        data = request.model_dump(mode="json", exclude_none=True)
        data.update(team_id=team_id, creator_id=creator_id)
        result = await get_tasks_service().create_task(data)
        raise_for_result(result, not_found=result.error or "Team not found")
        return {"success": True, "message": "Task created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create team task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{team_id}/tasks/{task_id}")
async def update_team_task(
    team_id: str,
    task_id: str,
    request: TaskUpdateRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        tasks_service = get_tasks_service()
        task = await _load_team_task(team_id, task_id)
        if not user.is_staff and not await tasks_service.can_modify(task, user.member_id):
            raise HTTPException(status_code=403, detail="You are not allowed to update this task")

        result = await tasks_service.update_task(task_id, updates)
        raise_for_result(result, not_found="Task not found")
        return {"success": True, "message": "Task updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update team task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{team_id}/tasks/{task_id}")
async def delete_team_task(
    team_id: str,
    task_id: str,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        tasks_service = get_tasks_service()
        task = await _load_team_task(team_id, task_id)
        if not user.is_staff and not await tasks_service.can_modify(task, user.member_id, include_assignee=False):
            raise HTTPException(status_code=403, detail="Only the task creator, team lead or an admin can delete this task")

        result = await tasks_service.delete(task_id)
        raise_for_result(result, not_found="Task not found")
        return {"success": True, "message": "Task deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete team task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
