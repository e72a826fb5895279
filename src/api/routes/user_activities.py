"""
User activity API routes
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.enums import ActivityType
from services.activity_service import get_activity_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_activities(
    member_id: Optional[str] = Query(None),
    type: Optional[ActivityType] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    _: AuthContext = Depends(AuthConfig.require("activities.view"))
):
    """Most recent activities first"""
    try:
        result = await get_activity_service().list_activities(
            member_id=member_id,
            activity_type=type.value if type else None,
            limit=limit
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list user activities: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
