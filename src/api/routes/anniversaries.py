"""
Anniversary API routes - birthdays and weddings, upcoming window and seeding
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.anniversary import AnniversaryCreateRequest, AnniversaryUpdateRequest
from models.enums import AnniversaryType
from services.anniversaries_service import get_anniversaries_service, annotate
from services.members_service import get_members_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result
from utils.helpers import parse_date, utc_now

router = APIRouter()
logger = logging.getLogger(__name__)


def _valid_date(value: str) -> str:
    try:
        return parse_date(value).isoformat()
    except (ValueError, AttributeError):
        raise HTTPException(status_code=400, detail="Invalid date format")


@router.get("")
async def list_anniversaries(
    type: Optional[AnniversaryType] = Query(None),
    member_id: Optional[str] = Query(None),
    upcoming_days: Optional[int] = Query(None, ge=0, le=366),
    _: AuthContext = Depends(AuthConfig.require("anniversaries.view"))
):
    try:
        result = await get_anniversaries_service().list_anniversaries(
            anniversary_type=type.value if type else None,
            member_id=member_id,
            upcoming_days=upcoming_days
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list anniversaries: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_anniversary(
    request: AnniversaryCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("anniversaries.create"))
):
    data = request.model_dump(mode="json")
    data["date"] = _valid_date(request.date)

    try:
        result = await get_anniversaries_service().create_anniversary(data)
        raise_for_result(result, not_found="Member not found")
        return {
            "success": True,
            "message": "Anniversary created successfully",
            "data": annotate(result.data[0], utc_now().date()),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create anniversary: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/seed")
async def seed_anniversaries(_: AuthContext = Depends(AuthConfig.require("anniversaries.create"))):
    """Create missing anniversaries from member birth and wedding dates"""
    try:
        result = await get_anniversaries_service().seed_from_members()
        raise_for_result(result)
        return {
            "success": True,
            "message": f"Created {result.count} anniversaries from member profiles",
            "created": result.count,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to seed anniversaries: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{anniversary_id}")
async def get_anniversary(anniversary_id: str, _: AuthContext = Depends(AuthConfig.require("anniversaries.view"))):
    try:
        result = await get_anniversaries_service().get_by_id(anniversary_id)
        raise_for_result(result, not_found="Anniversary not found")
        record = result.data[0]
        member = await get_members_service().get_by_id(record["member_id"])
        return {
            "success": True,
            "data": annotate(record, utc_now().date(), member.first if member.success else None),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get anniversary: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{anniversary_id}")
async def update_anniversary(
    anniversary_id: str,
    request: AnniversaryUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("anniversaries.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    if updates.get("date"):
        updates["date"] = _valid_date(updates["date"])

    try:
        result = await get_anniversaries_service().update(anniversary_id, updates)
        raise_for_result(result, not_found="Anniversary not found")
        return {
            "success": True,
            "message": "Anniversary updated successfully",
            "data": annotate(result.data[0], utc_now().date()),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update anniversary: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{anniversary_id}")
async def delete_anniversary(
    anniversary_id: str,
    _: AuthContext = Depends(AuthConfig.require("anniversaries.delete"))
):
    try:
        result = await get_anniversaries_service().delete(anniversary_id)
        raise_for_result(result, not_found="Anniversary not found")
        return {"success": True, "message": "Anniversary deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete anniversary: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
