"""
Giving API routes - tithes, offerings and other contributions
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.giving import GivingCreateRequest, GivingUpdateRequest
from models.enums import GivingCategory, GivingMethod
from services.giving_service import get_giving_service, total_amount
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_givings(
    member_id: Optional[str] = Query(None),
    category: Optional[GivingCategory] = Query(None),
    method: Optional[GivingMethod] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    is_recurring: Optional[bool] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("giving.view"))
):
    try:
        result = await get_giving_service().list_givings(
            member_id=member_id,
            category=category.value if category else None,
            method=method.value if method else None,
            start_date=start_date,
            end_date=end_date,
            is_recurring=is_recurring
        )
        raise_for_result(result)
        return {
            "success": True,
            "data": result.data,
            "total": result.count,
            "total_amount": total_amount(result.data),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list giving records: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_giving(
    request: GivingCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("giving.create"))
):
    if not request.member_id or request.amount is None or not request.method or not request.category:
        raise HTTPException(status_code=400, detail="Member, amount, method, and category are required")
    if request.amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than 0")

    try:
        result = await get_giving_service().record_giving(request.model_dump(mode="json", exclude_none=True))
        raise_for_result(result, not_found="Member not found")
        return {"success": True, "message": "Giving recorded successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to record giving: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{giving_id}")
async def get_giving(giving_id: str, _: AuthContext = Depends(AuthConfig.require("giving.view"))):
    try:
        result = await get_giving_service().get_by_id(giving_id)
        raise_for_result(result, not_found="Giving record not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get giving record: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{giving_id}")
async def update_giving(
    giving_id: str,
    request: GivingUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("giving.edit"))
):
    """Update a giving record; the member's running total follows the change"""
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    if request.amount is not None and request.amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than 0")

    try:
        result = await get_giving_service().update_giving(giving_id, updates)
        raise_for_result(result, not_found="Giving record not found")
        return {"success": True, "message": "Giving updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update giving: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{giving_id}")
async def delete_giving(giving_id: str, _: AuthContext = Depends(AuthConfig.require("giving.delete"))):
    try:
        result = await get_giving_service().delete_giving(giving_id)
        raise_for_result(result, not_found="Giving record not found")
        return {"success": True, "message": "Giving record deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete giving: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
