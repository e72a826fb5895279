"""
Member management API routes - profiles, CSV import, dashboard stats and journeys
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query, UploadFile, File

from models.member import MemberCreateRequest, MemberUpdateRequest
from services.members_service import get_members_service
from services.journey_service import get_journey_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result
from utils.helpers import is_valid_email, paginate

router = APIRouter()
logger = logging.getLogger(__name__)


async def _visible_team(user: AuthContext) -> Optional[str]:
    """
    Team filter forced onto callers who may only see their own team.

    Returns None for callers with full member access.
    """
    if user.has_permission("members.view"):
        return None
    if not user.has_permission("members.view.team"):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    member_id = require_member_profile(user)
    member = await get_members_service().get_by_id(member_id)
    team_id = member.first.get("team_id") if member.success else None
    if not team_id:
        raise HTTPException(status_code=404, detail="You are not part of any team")
    return team_id


@router.get("")
async def list_members(
    search: Optional[str] = Query(None),
    team_id: Optional[str] = Query(None),
    is_first_timer: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """List members newest first; team leaders only see their own team"""
    forced_team = await _visible_team(user)
    try:
        result = await get_members_service().list_members(
            search=search,
            team_id=forced_team or team_id,
            is_first_timer=is_first_timer,
            page=page,
            limit=limit
        )
        raise_for_result(result)
        total = result.page_info["total"]
        return {
            "success": True,
            "data": result.data,
            "total": total,
            "pagination": paginate(total, page, limit),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list members: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_member(
    request: MemberCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("members.create"))
):
    if not request.first_name or not request.last_name or not request.email:
        raise HTTPException(status_code=400, detail="First name, last name, and email are required")
    if not is_valid_email(request.email):
        raise HTTPException(status_code=400, detail="Please provide a valid email address")

    try:
        data = request.model_dump(mode="json", exclude_none=True)
        result = await get_members_service().create_member(data)
        raise_for_result(result)
        return {"success": True, "message": "Member created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/import")
async def import_members(
    file: UploadFile = File(...),
    _: AuthContext = Depends(AuthConfig.require("members.create"))
):
    """
    Bulk-create members from a CSV upload

    Every row is processed independently; the response lists which rows
    failed and why.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a CSV file")

    try:
        raw = await file.read()
        try:
            content = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
        if not content.strip():
            raise HTTPException(status_code=400, detail="CSV file is empty")

        summary = await get_members_service().import_members(content)
        logger.info(f"Imported {summary['successful']} of {summary['total']} members from {file.filename}")
        return {
            "success": True,
            "message": f"Import completed: {summary['successful']} successful, {summary['failed']} failed",
            "data": summary,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to import members: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/stats")
async def member_stats(user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    """Dashboard numbers for the calling member"""
    member_id = require_member_profile(user)
    try:
        member = await get_members_service().get_by_id(member_id)
        raise_for_result(member, not_found="Member profile not found")
        result = await get_journey_service().member_stats(member.data[0])
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load member stats: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/journey")
async def first_timers_journey(_: AuthContext = Depends(AuthConfig.require("members.view"))):
    """Overview of first-timers and how far along they are"""
    try:
        result = await get_journey_service().first_timers_journey()
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load first-timer journeys: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{member_id}")
async def get_member(member_id: str, _: AuthContext = Depends(AuthConfig.require("members.view"))):
    try:
        result = await get_members_service().get_by_id(member_id)
        raise_for_result(result, not_found="Member not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{member_id}")
async def update_member(
    member_id: str,
    request: MemberUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("members.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    if "email" in updates and not is_valid_email(updates["email"]):
        raise HTTPException(status_code=400, detail="Please provide a valid email address")

    try:
        result = await get_members_service().update_member(member_id, updates)
        raise_for_result(result, not_found="Member not found")
        return {"success": True, "message": "Member updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{member_id}")
async def delete_member(member_id: str, _: AuthContext = Depends(AuthConfig.require("members.delete"))):
    try:
        result = await get_members_service().delete_member(member_id)
        raise_for_result(result, not_found="Member not found")
        return {"success": True, "message": "Member deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{member_id}/journey")
async def member_journey(member_id: str, _: AuthContext = Depends(AuthConfig.require("members.view"))):
    """Everything about one member's involvement; also refreshes their cached stats"""
    try:
        result = await get_journey_service().member_journey(member_id)
        raise_for_result(result, not_found="Member not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load member journey: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
