"""
Form submission API routes - review queue and bulk export
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import Response

from models.form import SubmissionUpdateRequest
from models.enums import SubmissionStatus
from services.forms_service import get_forms_service, get_form_submissions_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result
from utils.helpers import utc_now

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_submissions(
    form_id: Optional[str] = Query(None),
    status: Optional[SubmissionStatus] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("form-submissions.view"))
):
    try:
        result = await get_form_submissions_service().list_submissions(
            form_id=form_id, status=status.value if status else None
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list form submissions: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/export")
async def export_all_submissions(
    status: Optional[SubmissionStatus] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("form-submissions.export"))
):
    """Every form's submissions in a single CSV with a leading Form column"""
    try:
        forms = await get_forms_service().list_forms()
        raise_for_result(forms)
        result = await get_form_submissions_service().export_all(
            forms.data, status=status.value if status else None
        )
        raise_for_result(result)
        filename = f"form-submissions-{utc_now().strftime('%Y-%m-%d')}.csv"
        return Response(
            content=result.data[0]["csv"],
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to export form submissions: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{submission_id}")
async def process_submission(
    submission_id: str,
    request: SubmissionUpdateRequest,
    user: AuthContext = Depends(AuthConfig.require("form-submissions.edit"))
):
    try:
        result = await get_form_submissions_service().process(
            submission_id,
            status=request.status.value,
            processed_by=user.user_id,
            notes=request.notes
        )
        raise_for_result(result, not_found="Submission not found")
        logger.info(f"Submission {submission_id} marked {request.status.value} by {user.email}")
        return {"success": True, "message": "Submission updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update submission: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
