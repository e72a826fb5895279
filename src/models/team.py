"""
Team and task Pydantic models
"""

from typing import List, Optional
from pydantic import BaseModel
from models.enums import TaskStatus, TaskPriority


class TeamCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    team_lead_id: Optional[str] = None
    member_ids: List[str] = []


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    team_lead_id: Optional[str] = None


class TeamMemberRequest(BaseModel):
    member_id: str


class TaskCreateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    team_id: Optional[str] = None
    creator_id: Optional[str] = None
    assignee_id: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[str] = None
    tags: List[str] = []
    is_public: bool = False


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
