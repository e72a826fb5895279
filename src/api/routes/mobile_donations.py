"""
Mobile donation API routes - Paystack-verified donations, checkout and giving history
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query

from models.giving import DonationRequest, DonationInitializeRequest
from services.giving_service import get_giving_service, DONATION_HISTORY_LIMIT
from services.members_service import get_members_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", status_code=201)
async def create_donation(
    request: DonationRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """
    Record a donation

    With a Paystack reference the payment is verified before it is recorded;
    without one the donation is stored as pending.
    """
    member_id = require_member_profile(user)
    if request.amount is None or request.amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than 0")

    try:
        result = await get_giving_service().create_donation(member_id, request.model_dump(mode="json"))
        raise_for_result(result, not_found="Member profile not found")
        giving = result.data[0]
        message = (
            "Donation recorded successfully" if giving.get("payment_status") == "completed"
            else "Donation recorded and awaiting payment confirmation"
        )
        return {"success": True, "message": message, "data": giving}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to record donation: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/initialize")
async def initialize_donation(
    request: DonationInitializeRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Start a Paystack checkout and return the authorization URL"""
    member_id = require_member_profile(user)
    try:
        member = await get_members_service().get_by_id(member_id)
        raise_for_result(member, not_found="Member profile not found")

        result = await get_giving_service().initialize_donation(
            member.data[0],
            amount=request.amount,
            currency=request.currency.upper(),
            category=request.category.value,
            callback_url=request.callback_url
        )
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to initialize donation: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("")
async def donation_overview(
    type: str = Query("history"),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """type=history lists the latest donations, type=stats returns the giving aggregate"""
    if type not in ("history", "stats"):
        raise HTTPException(status_code=400, detail="Invalid type parameter. Use 'history' or 'stats'")
    member_id = require_member_profile(user)

    try:
        giving_service = get_giving_service()
        if type == "history":
            result = await giving_service.get_member_givings(member_id, limit=DONATION_HISTORY_LIMIT)
            raise_for_result(result)
            return {"success": True, "data": result.data, "total": result.count}

        result = await giving_service.giving_summary(member_id)
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load donations: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
