"""
Form and submission Pydantic models
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from models.enums import FormType, FormFieldType, SubmissionStatus


class FormField(BaseModel):
    id: str
    label: str
    type: FormFieldType = FormFieldType.TEXT
    required: bool = False
    options: Optional[List[str]] = None
    placeholder: Optional[str] = None


class FormCreateRequest(BaseModel):
    title: str
    description: str = ""
    type: FormType = FormType.CUSTOM
    fields: List[FormField] = []
    is_active: bool = True
    requires_approval: bool = False


class FormUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[FormType] = None
    fields: Optional[List[FormField]] = None
    is_active: Optional[bool] = None
    requires_approval: Optional[bool] = None


class FormSubmitRequest(BaseModel):
    responses: Dict[str, Any] = {}
    submitter_name: Optional[str] = None
    submitter_email: Optional[str] = None


class SubmissionUpdateRequest(BaseModel):
    status: SubmissionStatus
    notes: Optional[str] = None
