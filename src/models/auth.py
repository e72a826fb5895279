"""
Authentication and user account Pydantic models
"""

from typing import List, Optional
from pydantic import BaseModel
from models.enums import UserRole, MaritalStatus


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class MobileRegisterRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class EmergencyContact(BaseModel):
    name: str
    phone: str = ""
    relationship: str = ""


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar: Optional[str] = None
    date_of_birth: Optional[str] = None
    wedding_anniversary: Optional[str] = None
    marital_status: Optional[MaritalStatus] = None
    emergency_contact: Optional[EmergencyContact] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None


class UserCreateRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.ADMIN
    permissions: List[str] = []
    member_id: Optional[str] = None


class UserUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None
    member_id: Optional[str] = None
