"""
Web authentication API routes - login, logout and session checks
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Response

from config.settings import AUTH_COOKIE_NAME, WEB_TOKEN_TTL_HOURS, ENV
from models.auth import LoginRequest
from services.auth_service import get_auth_service
from services.users_service import get_users_service, to_public_user
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login")
async def login(request: LoginRequest, response: Response):
    """Web login; the session token is returned and also set as an http-only cookie"""
    try:
        result = await get_auth_service().web_login(request.email, request.password)
        raise_for_result(result)

        session = result.data[0]
        response.set_cookie(
            key=AUTH_COOKIE_NAME,
            value=session["token"],
            max_age=WEB_TOKEN_TTL_HOURS * 3600,
            httponly=True,
            secure=ENV == "PROD",
            samesite="lax",
            path="/"
        )
        logger.info(f"AUTH: Web login for {session['user']['email']}")
        return {
            "success": True,
            "message": "Login successful",
            "token": session["token"],
            "user": session["user"],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to log in: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
async def get_me(user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    """Current user profile"""
    try:
        result = await get_users_service().get_by_id(user.user_id)
        raise_for_result(result, not_found="User not found")
        return {"success": True, "user": to_public_user(result.data[0])}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load current user: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/verify")
async def verify(user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    return {"success": True, "valid": True, "user": user.to_dict()}
