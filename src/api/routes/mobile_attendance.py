"""
Mobile attendance API routes - self check-in and the caller's history
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query

from models.event import SelfAttendanceRequest
from services.attendance_service import get_attendance_service
from services.journey import calculate_attendance_streak
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/mark")
async def mark_attendance(
    request: SelfAttendanceRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Mark the caller present; repeating the call on the same day returns the same record"""
    member_id = request.member_id or require_member_profile(user)
    if member_id != user.member_id and not user.has_permission("attendance.create"):
        raise HTTPException(status_code=403, detail="You can only mark your own attendance")

    try:
        result = await get_attendance_service().self_mark(member_id, request.event_id)
        raise_for_result(result, not_found=result.error or "Event not found")
        record = result.data[0]
        message = "Attendance already marked" if record.get("already_marked") else "Attendance marked successfully"
        return {"success": True, "message": message, "data": record}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to mark attendance: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/my")
async def my_attendance(
    limit: int = Query(50, ge=1, le=500),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    member_id = require_member_profile(user)
    try:
        attendance_service = get_attendance_service()
        result = await attendance_service.get_member_records(member_id, limit=limit)
        raise_for_result(result)
        present_dates = await attendance_service.present_dates(member_id)
        return {
            "success": True,
            "data": result.data,
            "total": result.count,
            "streak": calculate_attendance_streak(present_dates),
            "total_attended": len(present_dates),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load caller's attendance: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
