"""
Task API routes
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.team import TaskCreateRequest, TaskUpdateRequest
from models.enums import TaskStatus
from services.tasks_service import get_tasks_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_tasks(
    team_id: Optional[str] = Query(None),
    assignee_id: Optional[str] = Query(None),
    status: Optional[TaskStatus] = Query(None),
    is_public: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("tasks.view"))
):
    try:
        result = await get_tasks_service().list_tasks(
            team_id=team_id,
            assignee_id=assignee_id,
            status=status.value if status else None,
            is_public=is_public,
            search=search
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list tasks: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_task(
    request: TaskCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("tasks.create"))
):
    if not request.title or not request.description or not request.team_id or not request.creator_id:
        raise HTTPException(status_code=400, detail="Title, description, team, and creator are required")

    try:
        result = await get_tasks_service().create_task(request.model_dump(mode="json", exclude_none=True))
        raise_for_result(result, not_found=result.error or "Team not found")
        return {"success": True, "message": "Task created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{task_id}")
async def get_task(task_id: str, _: AuthContext = Depends(AuthConfig.require("tasks.view"))):
    try:
        result = await get_tasks_service().get_by_id(task_id)
        raise_for_result(result, not_found="Task not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("tasks.edit"))
):
    """Update a task; completing it stamps completed_at, assigning an open task picks it up"""
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_tasks_service().update_task(task_id, updates)
        raise_for_result(result, not_found="Task not found")
        return {"success": True, "message": "Task updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{task_id}")
async def delete_task(task_id: str, _: AuthContext = Depends(AuthConfig.require("tasks.delete"))):
    try:
        result = await get_tasks_service().delete(task_id)
        raise_for_result(result, not_found="Task not found")
        return {"success": True, "message": "Task deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete task: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
