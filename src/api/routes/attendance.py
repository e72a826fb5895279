"""
Attendance API routes
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.event import AttendanceCreateRequest, AttendanceUpdateRequest
from models.enums import AttendanceStatus
from services.attendance_service import get_attendance_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_attendance(
    member_id: Optional[str] = Query(None),
    event_id: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="Calendar day, YYYY-MM-DD"),
    status: Optional[AttendanceStatus] = Query(None),
    limit: int = Query(500, ge=1, le=1000),
    _: AuthContext = Depends(AuthConfig.require("attendance.view"))
):
    """Attendance newest first with member and event details"""
    try:
        result = await get_attendance_service().list_records(
            member_id=member_id,
            event_id=event_id,
            day=date,
            status=status.value if status else None,
            limit=limit
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list attendance: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_attendance(
    request: AttendanceCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("attendance.create"))
):
    if not request.member_id or not request.event_id or not request.date or not request.status:
        raise HTTPException(status_code=400, detail="Member, event, date, and status are required")

    try:
        result = await get_attendance_service().create_record(request.model_dump(mode="json", exclude_none=True))
        raise_for_result(result, not_found="Member or event not found")
        return {"success": True, "message": "Attendance recorded successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid attendance date")
    except Exception as e:
        logger.error(f"Failed to record attendance: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{record_id}")
async def get_attendance(record_id: str, _: AuthContext = Depends(AuthConfig.require("attendance.view"))):
    try:
        result = await get_attendance_service().get_by_id(record_id)
        raise_for_result(result, not_found="Attendance record not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get attendance record: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{record_id}")
async def update_attendance(
    record_id: str,
    request: AttendanceUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("attendance.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_attendance_service().update(record_id, updates)
        raise_for_result(result, not_found="Attendance record not found")
        return {"success": True, "message": "Attendance updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update attendance: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{record_id}")
async def delete_attendance(record_id: str, _: AuthContext = Depends(AuthConfig.require("attendance.delete"))):
    try:
        result = await get_attendance_service().delete(record_id)
        raise_for_result(result, not_found="Attendance record not found")
        return {"success": True, "message": "Attendance record deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete attendance: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
