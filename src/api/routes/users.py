"""
User account management API routes (staff only)
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.auth import UserCreateRequest, UserUpdateRequest
from models.enums import UserRole
from services.auth_service import get_auth_service
from services.users_service import get_users_service, to_public_user
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_role_grant(user: AuthContext, role: Optional[str]) -> None:
    """Only a super admin may hand out the super admin role"""
    if role == UserRole.SUPER_ADMIN.value and user.role != UserRole.SUPER_ADMIN.value:
        raise HTTPException(status_code=403, detail="Only super admins can grant the super_admin role")


@router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("users.view"))
):
    try:
        result = await get_auth_service().list_users(role=role.value if role else None, search=search)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_user(
    request: UserCreateRequest,
    user: AuthContext = Depends(AuthConfig.require("users.create"))
):
    """Create a staff account; the new user must change the password at first login"""
    _check_role_grant(user, request.role.value)
    try:
        result = await get_auth_service().create_staff_user(request.model_dump(mode="json"))
        raise_for_result(result)
        logger.info(f"{user.email} created account {request.email} ({request.role.value})")
        return {"success": True, "message": "User created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{user_id}")
async def get_user(user_id: str, _: AuthContext = Depends(AuthConfig.require("users.view"))):
    try:
        result = await get_users_service().get_by_id(user_id)
        raise_for_result(result, not_found="User not found")
        return {"success": True, "data": to_public_user(result.data[0])}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    user: AuthContext = Depends(AuthConfig.require("users.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    _check_role_grant(user, updates.get("role"))

    try:
        result = await get_auth_service().update_user(user_id, updates)
        raise_for_result(result, not_found="User not found")
        return {"success": True, "message": "User updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{user_id}")
async def delete_user(user_id: str, user: AuthContext = Depends(AuthConfig.require("users.delete"))):
    try:
        result = await get_auth_service().delete_user(user_id, acting_user_id=user.user_id)
        raise_for_result(result, not_found="User not found")
        return {"success": True, "message": "User deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
