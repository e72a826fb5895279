"""
Mobile event API routes - paged listings with the caller's attendance, and check-in
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.enums import EventListType
from models.event import CheckInRequest
from services.events_service import get_events_service
from services.attendance_service import get_attendance_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result
from utils.helpers import paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_mobile_events(
    type: EventListType = Query(EventListType.UPCOMING),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    user: Optional[AuthContext] = Depends(AuthConfig.get_optional_auth_dependency())
):
    """
    Events for the app's event tab

    Anonymous callers get the listing without attendance information.
    """
    try:
        attendance = []
        if user and user.member_id:
            records = await get_attendance_service().get_member_records(user.member_id, limit=500)
            attendance = records.data if records.success else []

        result, total = await get_events_service().list_mobile_events(
            list_type=type.value, page=page, limit=limit, attendance=attendance
        )
        raise_for_result(result)
        return {
            "success": True,
            "data": result.data,
            "pagination": paginate(total, page, limit),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list mobile events: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def check_in(
    request: CheckInRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Check the caller in to an event (occurrence ids accepted)"""
    if not request.event_id:
        raise HTTPException(status_code=400, detail="Event ID is required")
    member_id = require_member_profile(user)

    try:
        result = await get_attendance_service().check_in(member_id, request.event_id)
        raise_for_result(result, not_found="Event not found")
        record = result.data[0]
        return {
            "success": True,
            "message": f"Successfully checked in to {record['event_name']}",
            "data": record,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to check in: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
