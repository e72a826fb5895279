"""
Community Pydantic models
"""

from typing import Optional
from pydantic import BaseModel
from models.enums import CommunityType, MembershipAction, ManageAction


class CommunityCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[CommunityType] = None
    leader_id: Optional[str] = None
    is_active: bool = True
    is_private: bool = False
    invite_only: bool = False
    meeting_schedule: Optional[str] = None
    cover_image: Optional[str] = None


class CommunityUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[CommunityType] = None
    leader_id: Optional[str] = None
    is_active: Optional[bool] = None
    is_private: Optional[bool] = None
    invite_only: Optional[bool] = None
    meeting_schedule: Optional[str] = None
    cover_image: Optional[str] = None


class MembershipRequest(BaseModel):
    action: MembershipAction


class ManageMemberRequest(BaseModel):
    action: ManageAction
    member_id: str


class CommunityPostRequest(BaseModel):
    content: str
    image_url: Optional[str] = None
