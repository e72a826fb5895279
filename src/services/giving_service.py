"""
Giving service - donation records, member giving totals and Paystack-backed mobile donations
"""

import logging
import secrets
from decimal import Decimal
from datetime import datetime
from typing import Dict, Any, List, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.members_service import get_members_service
from services.activity_service import get_activity_service
from services.journey import summarize_giving
from services.payment_service import (
    get_paystack_service, is_successful_payment, validate_payment_data, PaymentGatewayError
)
from utils.helpers import utc_now, parse_timestamp

logger = logging.getLogger(__name__)

DONATION_HISTORY_LIMIT = 50


def total_amount(records: List[Dict[str, Any]]) -> float:
    return float(sum((Decimal(str(r.get("amount") or 0)) for r in records), Decimal("0")))


def counts_toward_total(record: Dict[str, Any]) -> bool:
    return record.get("payment_status", "completed") == "completed"


def generate_reference() -> str:
    return f"SYC-{int(utc_now().timestamp() * 1000)}-{secrets.token_hex(4)}"


class GivingService(BaseService):
    """Service for giving operations"""

    def __init__(self):
        super().__init__("givings")

    async def list_givings(
        self,
        member_id: Optional[str] = None,
        category: Optional[str] = None,
        method: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        is_recurring: Optional[bool] = None,
        limit: int = 1000
    ) -> ServiceResult:
        """
        List giving records newest first

        start_date and end_date bound the giving date inclusively.
        """
        filters: Dict[str, Any] = {}
        if member_id:
            filters["member_id"] = member_id
        if category:
            filters["category"] = category
        if method:
            filters["method"] = method
        if is_recurring is not None:
            filters["is_recurring"] = is_recurring
        if start_date and end_date:
            filters["date"] = {"op": "BETWEEN", "value": [start_date, end_date]}
        elif start_date:
            filters["date"] = {"op": ">=", "value": start_date}
        elif end_date:
            filters["date"] = {"op": "<=", "value": end_date}

        return await self.read(
            filters=filters,
            order_by=[{"field": "date", "dir": "desc"}],
            limit=limit
        )

    async def record_giving(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Record a gift and add it to the member's running total

        Returns:
            ServiceResult with the created giving; RESOURCE_NOT_FOUND for an unknown member
        """
        members_service = get_members_service()
        member = await members_service.get_by_id(data["member_id"])
        if not member.success:
            if member.error_type == "RESOURCE_NOT_FOUND":
                return failure("Member not found", "RESOURCE_NOT_FOUND")
            return member

        record = {key: value for key, value in data.items() if value is not None}
        record.setdefault("date", utc_now())
        result = await self.create(record)
        if not result.success:
            if result.error_type == "CONFLICT":
                return failure("This payment reference has already been recorded", "CONFLICT")
            return result

        giving = result.data[0]
        if counts_toward_total(giving):
            await members_service.adjust_total_giving(data["member_id"], Decimal(str(giving["amount"])))
            await get_activity_service().record(
                data["member_id"],
                "giving_made",
                f"Gave {giving['amount']} {giving.get('currency', '')} ({giving['category'].replace('_', ' ')})".strip(),
                {"giving_id": giving["giving_id"]}
            )
        return result

    async def update_giving(self, giving_id: str, updates: Dict[str, Any]) -> ServiceResult:
        """Update a gift and move the difference onto the member's running total"""
        current = await self.get_by_id(giving_id)
        if not current.success:
            return current
        before = current.data[0]

        result = await self.update(giving_id, updates)
        if not result.success:
            return result
        after = result.data[0]

        old_amount = Decimal(str(before["amount"])) if counts_toward_total(before) else Decimal("0")
        new_amount = Decimal(str(after["amount"])) if counts_toward_total(after) else Decimal("0")
        members_service = get_members_service()
        if str(before["member_id"]) != str(after["member_id"]):
            # Gift moved to another member
            if old_amount:
                await members_service.adjust_total_giving(before["member_id"], -old_amount)
            if new_amount:
                await members_service.adjust_total_giving(after["member_id"], new_amount)
        elif old_amount != new_amount:
            await members_service.adjust_total_giving(after["member_id"], new_amount - old_amount)
        return result

    async def delete_giving(self, giving_id: str) -> ServiceResult:
        result = await self.delete(giving_id)
        if result.success and counts_toward_total(result.data[0]):
            removed = result.data[0]
            await get_members_service().adjust_total_giving(
                removed["member_id"], -Decimal(str(removed["amount"]))
            )
        return result

    async def get_member_givings(self, member_id: str, limit: int = 1000) -> ServiceResult:
        return await self.read(
            filters={"member_id": member_id},
            order_by=[{"field": "date", "dir": "desc"}],
            limit=limit
        )

    async def giving_summary(self, member_id: str, now: Optional[datetime] = None) -> ServiceResult:
        records = await self.get_member_givings(member_id)
        if not records.success:
            return records
        return ServiceResult(success=True, data=[summarize_giving(records.data, now)], count=1)

    async def create_donation(self, member_id: str, donation: Dict[str, Any]) -> ServiceResult:
        """
        Record a donation made from the mobile app

        With a Paystack reference the transaction is verified first: it must
        have succeeded for the donated amount. A reference that was already
        recorded is a CONFLICT; a failed verification is PAYMENT_REQUIRED.
        Without a reference the donation is stored as pending.
        """
        amount = Decimal(str(donation["amount"]))
        currency = (donation.get("currency") or "NGN").upper()
        reference = donation.get("reference")

        record: Dict[str, Any] = {
            "member_id": member_id,
            "amount": amount,
            "currency": currency,
            "method": donation["method"],
            "category": donation["category"],
            "description": donation.get("description"),
            "is_recurring": donation.get("is_recurring", False),
            "recurring_frequency": donation.get("recurring_frequency"),
            "date": utc_now(),
        }

        if not reference:
            record["payment_status"] = "pending"
            return await self.record_giving(record)

        existing = await self.read(filters={"payment_reference": reference}, limit=1)
        if not existing.success:
            return existing
        if existing.data:
            return failure("This payment reference has already been recorded", "CONFLICT")

        try:
            transaction = await get_paystack_service().verify_payment(reference)
        except PaymentGatewayError as e:
            logger.warning(f"Payment verification for {reference} failed: {e}")
            return failure("Payment verification failed", "PAYMENT_REQUIRED")

        if not is_successful_payment(transaction, amount, currency):
            logger.warning(
                f"Payment {reference} did not verify: status={transaction.get('status')} "
                f"amount={transaction.get('amount')}"
            )
            return failure("Payment verification failed", "PAYMENT_REQUIRED")

        paid_at = transaction.get("paid_at") or transaction.get("paidAt")
        record["payment_reference"] = reference
        record["payment_status"] = "completed"
        if paid_at:
            record["date"] = parse_timestamp(paid_at)
        logger.info(f"Verified Paystack payment {reference} for member {member_id}")
        return await self.record_giving(record)

    async def initialize_donation(
        self,
        member: Dict[str, Any],
        amount: Decimal,
        currency: str,
        category: str,
        callback_url: Optional[str] = None
    ) -> ServiceResult:
        """Start a Paystack checkout for a member; INVALID_REQUEST lists validation errors"""
        errors = validate_payment_data(amount, currency, member.get("email"))
        if errors:
            return failure("; ".join(errors), "INVALID_REQUEST")

        paystack = get_paystack_service()
        if not paystack.is_configured:
            return failure("Payment gateway is not configured", "CONFIGURATION_ERROR")

        reference = generate_reference()
        try:
            checkout = await paystack.initialize_transaction(
                email=member["email"],
                amount=amount,
                currency=currency,
                reference=reference,
                callback_url=callback_url,
                metadata={"member_id": member["member_id"], "category": category},
            )
        except PaymentGatewayError as e:
            return failure(str(e), "UPSTREAM_ERROR")

        return ServiceResult(success=True, data=[{
            "authorization_url": checkout.get("authorization_url"),
            "access_code": checkout.get("access_code"),
            "reference": checkout.get("reference", reference),
        }], count=1)


# Global service instance
_giving_service: Optional[GivingService] = None


def get_giving_service() -> GivingService:
    """Get the global giving service instance"""
    global _giving_service
    if _giving_service is None:
        _giving_service = GivingService()
    return _giving_service
