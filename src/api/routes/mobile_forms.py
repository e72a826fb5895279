"""
Mobile form API routes - active forms only
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.enums import FormType
from services.forms_service import get_forms_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_active_forms(
    type: Optional[FormType] = Query(None),
    _: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        result = await get_forms_service().list_forms(form_type=type.value if type else None, active_only=True)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list active forms: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{form_id}")
async def get_active_form(form_id: str, _: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    try:
        result = await get_forms_service().get_form(form_id, active_only=True)
        raise_for_result(result, not_found="Form not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get active form: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
