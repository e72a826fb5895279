"""
Anniversary Pydantic models
"""

from typing import Optional
from pydantic import BaseModel
from models.enums import AnniversaryType


class AnniversaryCreateRequest(BaseModel):
    member_id: str
    type: AnniversaryType
    date: str
    recurring: bool = True
    notes: Optional[str] = None


class AnniversaryUpdateRequest(BaseModel):
    type: Optional[AnniversaryType] = None
    date: Optional[str] = None
    recurring: Optional[bool] = None
    notes: Optional[str] = None
