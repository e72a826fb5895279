"""
Event and attendance Pydantic models
"""

from typing import Optional
from pydantic import BaseModel
from models.enums import RecurringType, AttendanceStatus


class EventCreateRequest(BaseModel):
    name: Optional[str] = None
    description: str = ""
    date: Optional[str] = None
    end_date: Optional[str] = None
    location: str = ""
    capacity: Optional[int] = None
    is_recurring: bool = False
    recurring_type: Optional[RecurringType] = None
    banner_image: Optional[str] = None
    allow_self_attendance: bool = True
    community_id: Optional[str] = None


class EventUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    is_recurring: Optional[bool] = None
    recurring_type: Optional[RecurringType] = None
    banner_image: Optional[str] = None
    allow_self_attendance: Optional[bool] = None
    community_id: Optional[str] = None


class CheckInRequest(BaseModel):
    event_id: Optional[str] = None


class AttendanceCreateRequest(BaseModel):
    member_id: Optional[str] = None
    event_id: Optional[str] = None
    date: Optional[str] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


class AttendanceUpdateRequest(BaseModel):
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
    date: Optional[str] = None


class SelfAttendanceRequest(BaseModel):
    event_id: str
    member_id: Optional[str] = None
