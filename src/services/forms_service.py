"""
Forms service - configurable request forms (baby dedication, prayer requests, ...) and their submissions
"""

import logging
from typing import Dict, Any, List, Optional

from services.base_service import BaseService, ServiceResult, failure
from utils.csv_tools import build_submissions_csv
from utils.helpers import utc_now, is_valid_email

logger = logging.getLogger(__name__)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return value is False


def validate_responses(fields: List[Dict[str, Any]], responses: Dict[str, Any]) -> Optional[str]:
    """
    Check submitted answers against a form's field definitions.

    Returns the first problem found, or None when the answers are acceptable.
    """
    for field in fields:
        label = field.get("label") or field.get("id")
        value = responses.get(field.get("id"))

        if is_blank(value):
            if field.get("required"):
                return f'Field "{label}" is required'
            continue

        field_type = field.get("type", "text")
        if field_type == "email" and not is_valid_email(str(value)):
            return f'Field "{label}" must be a valid email address'
        if field_type == "select" and field.get("options"):
            choices = value if isinstance(value, list) else [value]
            if any(choice not in field["options"] for choice in choices):
                return f'Field "{label}" must be one of: {", ".join(field["options"])}'
    return None


class FormsService(BaseService):
    """Service for form definitions"""

    def __init__(self):
        super().__init__("forms")

    async def list_forms(self, form_type: Optional[str] = None, active_only: bool = False,
                         search: Optional[str] = None) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if form_type:
            filters["type"] = form_type
        if active_only:
            filters["is_active"] = True
        return await self.read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=100
        )

    async def get_form(self, form_id: str, active_only: bool = False) -> ServiceResult:
        result = await self.get_by_id(form_id)
        if not result.success:
            if result.error_type == "RESOURCE_NOT_FOUND":
                return failure("Form not found", "RESOURCE_NOT_FOUND")
            return result
        if active_only and not result.data[0].get("is_active"):
            return failure("Form not found", "RESOURCE_NOT_FOUND")
        return result

    async def create_form(self, data: Dict[str, Any]) -> ServiceResult:
        field_ids = [field["id"] for field in data.get("fields") or []]
        if len(field_ids) != len(set(field_ids)):
            return failure("Form field ids must be unique", "INVALID_REQUEST")
        logger.info(f"Creating form '{data['title']}' with {len(field_ids)} field(s)")
        return await self.create({key: value for key, value in data.items() if value is not None})

    async def update_form(self, form_id: str, data: Dict[str, Any]) -> ServiceResult:
        if "fields" in data:
            field_ids = [field["id"] for field in data["fields"] or []]
            if len(field_ids) != len(set(field_ids)):
                return failure("Form field ids must be unique", "INVALID_REQUEST")
        result = await self.update(form_id, data)
        if not result.success and result.error_type == "RESOURCE_NOT_FOUND":
            return failure("Form not found", "RESOURCE_NOT_FOUND")
        return result


class FormSubmissionsService(BaseService):
    """Service for form submissions"""

    def __init__(self):
        super().__init__("form_submissions")

    async def submit(
        self,
        form: Dict[str, Any],
        responses: Dict[str, Any],
        submitter_id: Optional[str] = None,
        submitter_name: Optional[str] = None,
        submitter_email: Optional[str] = None
    ) -> ServiceResult:
        """
        Validate and store a submission

        Forms that require approval start their submissions as pending, the
        rest are approved straight away.
        """
        if not form.get("is_active"):
            return failure("Form is not active", "INVALID_REQUEST")

        problem = validate_responses(form.get("fields") or [], responses or {})
        if problem:
            return failure(problem, "INVALID_REQUEST")

        known_ids = {field["id"] for field in form.get("fields") or []}
        result = await self.create({
            "form_id": form["form_id"],
            "submitter_id": submitter_id,
            "submitter_name": submitter_name,
            "submitter_email": submitter_email,
            "responses": {key: value for key, value in (responses or {}).items() if key in known_ids},
            "status": "pending" if form.get("requires_approval") else "approved",
            "submitted_at": utc_now(),
        })
        if result.success:
            logger.info(f"New submission {result.data[0]['submission_id']} for form {form['form_id']}")
        return result

    async def list_submissions(self, form_id: Optional[str] = None, status: Optional[str] = None,
                               limit: int = 5000) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if form_id:
            filters["form_id"] = form_id
        if status:
            filters["status"] = status
        return await self.read(
            filters=filters,
            order_by=[{"field": "submitted_at", "dir": "desc"}],
            limit=limit
        )

    async def process(self, submission_id: str, status: str, processed_by: Optional[str],
                      notes: Optional[str] = None) -> ServiceResult:
        """Record a review decision on a submission"""
        updates: Dict[str, Any] = {
            "status": status,
            "processed_at": utc_now(),
            "processed_by": processed_by,
        }
        if notes is not None:
            updates["notes"] = notes
        result = await self.update(submission_id, updates)
        if not result.success and result.error_type == "RESOURCE_NOT_FOUND":
            return failure("Submission not found", "RESOURCE_NOT_FOUND")
        return result

    async def export_form(self, form: Dict[str, Any]) -> ServiceResult:
        """CSV of one form's submissions, oldest first"""
        submissions = await self.list_submissions(form_id=form["form_id"])
        if not submissions.success:
            return submissions
        ordered = list(reversed(submissions.data))
        return ServiceResult(success=True, data=[{"csv": build_submissions_csv([form], ordered)}], count=len(ordered))

    async def export_all(self, forms: List[Dict[str, Any]], status: Optional[str] = None) -> ServiceResult:
        """CSV of every form's submissions with a leading Form column"""
        submissions = await self.list_submissions(status=status)
        if not submissions.success:
            return submissions
        ordered = list(reversed(submissions.data))
        csv_text = build_submissions_csv(forms, ordered, include_form_column=True)
        return ServiceResult(success=True, data=[{"csv": csv_text}], count=len(ordered))


# Global service instances
_forms_service: Optional[FormsService] = None
_form_submissions_service: Optional[FormSubmissionsService] = None


def get_forms_service() -> FormsService:
    """Get the global forms service instance"""
    global _forms_service
    if _forms_service is None:
        _forms_service = FormsService()
    return _forms_service


def get_form_submissions_service() -> FormSubmissionsService:
    """Get the global form submissions service instance"""
    global _form_submissions_service
    if _form_submissions_service is None:
        _form_submissions_service = FormSubmissionsService()
    return _form_submissions_service
