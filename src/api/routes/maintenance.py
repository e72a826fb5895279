"""
Maintenance API routes - user/member relationship health and repair
"""

import logging
from fastapi import APIRouter, HTTPException, Depends

from services.maintenance_service import get_maintenance_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/relationships")
async def relationship_report(_: AuthContext = Depends(AuthConfig.require("maintenance.run"))):
    """Users and members whose links point nowhere or only one way"""
    try:
        result = await get_maintenance_service().relationship_report()
        raise_for_result(result)
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to build relationship report: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/repair")
async def repair_relationships(user: AuthContext = Depends(AuthConfig.require("maintenance.run"))):
    try:
        result = await get_maintenance_service().repair_relationships()
        raise_for_result(result)
        logger.info(f"Relationship repair run by {user.email}: {result.data[0]}")
        return {"success": True, "message": "Relationships repaired", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to repair relationships: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
