"""
Community API routes (staff administration)
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.community import CommunityCreateRequest, CommunityUpdateRequest
from models.enums import CommunityType
from services.communities_service import get_communities_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_communities(
    search: Optional[str] = Query(None),
    type: Optional[CommunityType] = Query(None),
    leader_id: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("communities.view"))
):
    try:
        result = await get_communities_service().list_communities(
            search=search,
            community_type=type.value if type else None,
            leader_id=leader_id,
            is_active=is_active
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list communities: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_community(
    request: CommunityCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("communities.create"))
):
    if not request.name or not request.description or not request.type or not request.leader_id:
        raise HTTPException(status_code=400, detail="Name, description, type, and leader are required")

    try:
        result = await get_communities_service().create_community(request.model_dump(mode="json"))
        raise_for_result(result, not_found="Leader not found")
        return {"success": True, "message": "Community created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create community: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{community_id}")
async def get_community(community_id: str, _: AuthContext = Depends(AuthConfig.require("communities.view"))):
    try:
        result = await get_communities_service().get_community(community_id)
        raise_for_result(result, not_found="Community not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get community: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{community_id}")
async def update_community(
    community_id: str,
    request: CommunityUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("communities.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_communities_service().update_community(community_id, updates)
        raise_for_result(result, not_found="Community not found")
        return {"success": True, "message": "Community updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update community: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{community_id}")
async def delete_community(community_id: str, _: AuthContext = Depends(AuthConfig.require("communities.delete"))):
    try:
        result = await get_communities_service().delete_community(community_id)
        raise_for_result(result, not_found="Community not found")
        return {"success": True, "message": "Community deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete community: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
