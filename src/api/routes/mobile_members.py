"""
Mobile member API routes - home screen journey and profile mirrors
"""

import logging
from fastapi import APIRouter, HTTPException, Depends

from services.members_service import get_members_service
from services.journey_service import get_journey_service
from services.tasks_service import get_tasks_service
from services.giving_service import get_giving_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_access(user: AuthContext, member_id: str) -> None:
    if member_id != user.member_id and not user.is_staff:
        raise HTTPException(status_code=403, detail="You can only view your own profile")


async def _load_member(member_id: str):
    result = await get_members_service().get_by_id(member_id)
    raise_for_result(result, not_found="Member not found")
    return result.data[0]


@router.get("/journey")
async def my_journey(user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    """Caller's stats, five recent activities and five upcoming events"""
    member_id = require_member_profile(user)
    try:
        member = await get_members_service().get_by_id(member_id)
        raise_for_result(member, not_found="Member profile not found")
        result = await get_journey_service().mobile_journey(member.data[0])
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load mobile journey: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/members/{member_id}")
async def get_member_profile(member_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    _check_access(user, member_id)
    try:
        return {"success": True, "data": await _load_member(member_id)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load member profile: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/members/{member_id}/stats")
async def get_member_stats(member_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    _check_access(user, member_id)
    try:
        member = await _load_member(member_id)
        result = await get_journey_service().member_stats(member)
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load member stats: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/members/{member_id}/tasks")
async def get_member_tasks(member_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    _check_access(user, member_id)
    try:
        member = await _load_member(member_id)
        result = await get_tasks_service().get_member_tasks(member["member_id"])
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load member tasks: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/members/{member_id}/giving-stats")
async def get_member_giving_stats(member_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    _check_access(user, member_id)
    try:
        member = await _load_member(member_id)
        result = await get_giving_service().giving_summary(member["member_id"])
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load giving stats: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
