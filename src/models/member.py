"""
Member-related Pydantic models
"""

from typing import List, Optional
from pydantic import BaseModel
from models.enums import MaritalStatus
from models.auth import EmergencyContact


class MemberCreateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: str = ""
    date_joined: Optional[str] = None
    is_first_timer: bool = False
    team_id: Optional[str] = None
    is_team_lead: bool = False
    is_admin: bool = False
    avatar: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    wedding_anniversary: Optional[str] = None
    marital_status: MaritalStatus = MaritalStatus.SINGLE
    emergency_contact: Optional[EmergencyContact] = None
    skills: List[str] = []
    interests: List[str] = []


class MemberUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_first_timer: Optional[bool] = None
    team_id: Optional[str] = None
    is_team_lead: Optional[bool] = None
    is_admin: Optional[bool] = None
    avatar: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    wedding_anniversary: Optional[str] = None
    marital_status: Optional[MaritalStatus] = None
    emergency_contact: Optional[EmergencyContact] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None


class MemberImportResult(BaseModel):
    total: int
    successful: int
    failed: int
    errors: List[str]
