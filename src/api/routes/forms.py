"""
Form API routes - form builder, public submission and CSV export
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import Response

from models.form import FormCreateRequest, FormUpdateRequest, FormSubmitRequest
from models.enums import FormType
from services.forms_service import get_forms_service, get_form_submissions_service
from utils.auth import AuthConfig, AuthContext
from utils.csv_tools import export_filename
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_forms(
    type: Optional[FormType] = Query(None),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("forms.view"))
):
    try:
        result = await get_forms_service().list_forms(
            form_type=type.value if type else None,
            active_only=bool(is_active),
            search=search
        )
        raise_for_result(result)
        data = result.data
        if is_active is False:
            data = [form for form in data if not form.get("is_active")]
        return {"success": True, "data": data, "total": len(data)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list forms: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_form(
    request: FormCreateRequest,
    user: AuthContext = Depends(AuthConfig.require("forms.create"))
):
    if not request.title.strip():
        raise HTTPException(status_code=400, detail="Form title is required")

    try:
        data = request.model_dump(mode="json")
        data["created_by"] = user.member_id
        result = await get_forms_service().create_form(data)
        raise_for_result(result)
        return {"success": True, "message": "Form created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create form: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{form_id}")
async def get_form(form_id: str, _: AuthContext = Depends(AuthConfig.require("forms.view"))):
    try:
        result = await get_forms_service().get_form(form_id)
        raise_for_result(result, not_found="Form not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get form: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{form_id}")
async def update_form(
    form_id: str,
    request: FormUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("forms.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_forms_service().update_form(form_id, updates)
        raise_for_result(result, not_found="Form not found")
        return {"success": True, "message": "Form updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update form: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{form_id}")
async def delete_form(form_id: str, _: AuthContext = Depends(AuthConfig.require("forms.delete"))):
    """Delete a form; its submissions are removed with it"""
    try:
        result = await get_forms_service().delete(form_id)
        raise_for_result(result, not_found="Form not found")
        logger.info(f"Deleted form {form_id}")
        return {"success": True, "message": "Form deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete form: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{form_id}/submit", status_code=201)
async def submit_form(
    form_id: str,
    request: FormSubmitRequest,
    user: Optional[AuthContext] = Depends(AuthConfig.get_optional_auth_dependency())
):
    """
    Submit answers to a form

    Anonymous callers are accepted. Signed-in callers are recorded as the
    submitter, with their name and email filled in when the body omits them.
    """
    try:
        form = await get_forms_service().get_form(form_id)
        raise_for_result(form, not_found="Form not found")

        submitter_name = request.submitter_name
        submitter_email = request.submitter_email
        if user:
            submitter_name = submitter_name or f"{user.first_name} {user.last_name}".strip() or None
            submitter_email = submitter_email or user.email

        result = await get_form_submissions_service().submit(
            form.data[0],
            request.responses,
            submitter_id=user.member_id if user else None,
            submitter_name=submitter_name,
            submitter_email=submitter_email
        )
        raise_for_result(result)
        return {"success": True, "message": "Form submitted successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to submit form: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{form_id}/export")
async def export_form_submissions(
    form_id: str,
    _: AuthContext = Depends(AuthConfig.require("form-submissions.export"))
):
    """Download a form's submissions as CSV"""
    try:
        form = await get_forms_service().get_form(form_id)
        raise_for_result(form, not_found="Form not found")

        result = await get_form_submissions_service().export_form(form.data[0])
        raise_for_result(result)
        filename = export_filename(form.data[0]["title"])
        logger.info(f"Exported {result.count} submission(s) for form {form_id}")
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
