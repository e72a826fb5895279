"""
Giving and donation Pydantic models
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel
from models.enums import GivingMethod, GivingCategory, RecurringType, PaymentStatus


class GivingCreateRequest(BaseModel):
    member_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: str = "USD"
    method: Optional[GivingMethod] = None
    category: Optional[GivingCategory] = None
    description: Optional[str] = None
    date: Optional[str] = None
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringType] = None


class GivingUpdateRequest(BaseModel):
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    method: Optional[GivingMethod] = None
    category: Optional[GivingCategory] = None
    description: Optional[str] = None
    date: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_frequency: Optional[RecurringType] = None
    payment_status: Optional[PaymentStatus] = None


class DonationRequest(BaseModel):
    amount: Optional[Decimal] = None
    currency: str = "NGN"
    category: GivingCategory = GivingCategory.OFFERING
    method: GivingMethod = GivingMethod.CARD
    description: Optional[str] = None
    reference: Optional[str] = None
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringType] = None


class DonationInitializeRequest(BaseModel):
    amount: Decimal
    currency: str = "NGN"
    category: GivingCategory = GivingCategory.OFFERING
    callback_url: Optional[str] = None
