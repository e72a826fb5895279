"""
Mobile authentication API routes - registration, login, profile and password flows
"""

import logging
from fastapi import APIRouter, HTTPException, Depends

from models.auth import (
    LoginRequest, MobileRegisterRequest, ForgotPasswordRequest, ResetPasswordRequest,
    ChangePasswordRequest, ProfileUpdateRequest
)
from services.auth_service import get_auth_service
from services.members_service import get_members_service
from services.users_service import get_users_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)

# Profile fields that are mirrored onto the user account
MIRRORED_USER_FIELDS = ("first_name", "last_name")


@router.post("/register", status_code=201)
async def register(request: MobileRegisterRequest):
    """Create a member profile and a linked account, then sign the user in"""
    try:
        result = await get_auth_service().register_mobile(request.model_dump())
        raise_for_result(result)
        session = result.data[0]
        return {
            "success": True,
            "message": "Registration successful",
            "token": session["token"],
            "user": session["user"],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to register mobile user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/login")
async def mobile_login(request: LoginRequest):
    try:
        result = await get_auth_service().mobile_login(request.email, request.password)
        raise_for_result(result)
        session = result.data[0]
        return {
            "success": True,
            "message": "Login successful",
            "token": session["token"],
            "user": session["user"],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to log in mobile user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/profile")
async def get_profile(user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    """The caller's member profile"""
    member_id = require_member_profile(user)
    try:
        result = await get_members_service().get_by_id(member_id)
        raise_for_result(result, not_found="Member profile not found")
        return {"success": True, "data": dict(result.data[0], role=user.role, user_id=user.user_id)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load profile: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/profile")
async def update_profile(
    request: ProfileUpdateRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    member_id = require_member_profile(user)
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No profile fields provided")

    try:
        result = await get_members_service().update_member(member_id, updates)
        raise_for_result(result, not_found="Member profile not found")

        mirrored = {key: updates[key] for key in MIRRORED_USER_FIELDS if updates.get(key)}
        if mirrored:
            await get_users_service().update(user.user_id, mirrored)

        return {"success": True, "message": "Profile updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update profile: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        result = await get_auth_service().change_password(
            user.user_id, request.current_password, request.new_password
        )
        raise_for_result(result, not_found="User not found")
        return {"success": True, "message": "Password changed successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to change password: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/forgot-password")
async def forgot_password(request: ForgotPasswordRequest):
    """Always answers with the same message so emails cannot be probed"""
    try:
        result = await get_auth_service().forgot_password(request.email)
        raise_for_result(result)
        return {"success": True, "message": result.data[0]["message"]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to start password reset: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest):
    try:
        result = await get_auth_service().reset_password(request.token, request.password)
        raise_for_result(result)
        return {"success": True, "message": "Password has been reset successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to reset password: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
