"""
Event API routes - events with their recurring occurrences
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.event import EventCreateRequest, EventUpdateRequest
from services.events_service import get_events_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result
from utils.helpers import parse_timestamp

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_dates(date_value: Optional[str], end_value: Optional[str]) -> None:
    try:
        start = parse_timestamp(date_value) if date_value else None
        end = parse_timestamp(end_value) if end_value else None
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid event date")
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="End date must be after the start date")


@router.get("")
async def list_events(
    search: Optional[str] = Query(None),
    upcoming: bool = Query(False),
    _: Optional[AuthContext] = Depends(AuthConfig.get_optional_auth_dependency())
):
    """Events and their occurrences over the coming year, sorted by date"""
    try:
        result = await get_events_service().list_events(search=search, upcoming=upcoming)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list events: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_event(
    request: EventCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("events.create"))
):
    if not request.name or not request.date:
        raise HTTPException(status_code=400, detail="Name and date are required")
    if request.is_recurring and not request.recurring_type:
        raise HTTPException(status_code=400, detail="Recurring events need a recurring type")
    _check_dates(request.date, request.end_date)

    try:
        result = await get_events_service().create(request.model_dump(mode="json", exclude_none=True))
        raise_for_result(result)
        logger.info(f"Created event '{request.name}' ({result.data[0]['event_id']})")
        return {"success": True, "message": "Event created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create event: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    _: Optional[AuthContext] = Depends(AuthConfig.get_optional_auth_dependency())
):
    """Accepts plain event ids and occurrence ids ("<event id>_<YYYY-MM-DD>")"""
    try:
        result = await get_events_service().resolve_occurrence(event_id)
        raise_for_result(result, not_found="Event not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get event: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    request: EventUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("events.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    _check_dates(updates.get("date"), updates.get("end_date"))

    try:
        result = await get_events_service().update(event_id, updates)
        raise_for_result(result, not_found="Event not found")
        return {"success": True, "message": "Event updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update event: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{event_id}")
async def delete_event(event_id: str, _: AuthContext = Depends(AuthConfig.require("events.delete"))):
    try:
        result = await get_events_service().delete(event_id)
        raise_for_result(result, not_found="Event not found")
        return {"success": True, "message": "Event deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete event: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
