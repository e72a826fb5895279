"""
Tests for the Paystack client and donation recording
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from services.base_service import ServiceResult
from services.giving_service import GivingService, total_amount, counts_toward_total
from services.payment_service import (
    PaystackService, PaymentGatewayError, to_minor_units, from_minor_units,
    validate_payment_data, is_successful_payment
)


def paystack_with(handler) -> PaystackService:
    return PaystackService(secret_key="sk_test", base_url="https://paystack.test",
                           transport=httpx.MockTransport(handler))


class TestAmounts:

    def test_minor_units_round_half_up(self):
        assert to_minor_units("10.005") == 1001
        assert to_minor_units(2500) == 250000
        assert from_minor_units(1001) == Decimal("10.01")

    def test_validate_payment_data(self):
        assert validate_payment_data("500", "ngn", "ada@example.com") == []
        errors = validate_payment_data("50", "NGN", "bad-email")
        assert "Minimum amount for NGN is 100" in errors
        assert "A valid email address is required" in errors

    def test_validate_rejects_unknown_currency_and_zero(self):
        errors = validate_payment_data(0, "EUR", "ada@example.com")
        assert errors[0] == "Amount must be greater than 0"
        assert errors[1].startswith("Currency must be one of")

    @pytest.mark.parametrize("amount", ["abc", None, "NaN", "Infinity", [100]])
    def test_validate_rejects_unparseable_amount(self, amount):
        errors = validate_payment_data(amount, "NGN", "ada@example.com")
        assert errors == ["Amount must be greater than 0"]

    def test_is_successful_payment(self):
        transaction = {"status": "success", "amount": 500000, "currency": "NGN"}
        assert is_successful_payment(transaction, Decimal("5000"), "NGN")
        assert not is_successful_payment(transaction, Decimal("4000"), "NGN")
        assert not is_successful_payment(dict(transaction, status="abandoned"), Decimal("5000"))
        assert not is_successful_payment(transaction, Decimal("5000"), "USD")

    def test_total_amount_and_completed_rule(self):
        records = [{"amount": "10.10"}, {"amount": 5}, {"amount": None}]
        assert total_amount(records) == 15.1
        assert counts_toward_total({"payment_status": "pending"}) is False
        assert counts_toward_total({}) is True


class TestPaystackService:

    @pytest.mark.asyncio
    async def test_verify_payment_sends_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["path"] = request.url.path
            return httpx.Response(200, json={"status": True, "data": {"status": "success", "amount": 100}})

        data = await paystack_with(handler).verify_payment("ref-1")
        assert data["status"] == "success"
        assert seen == {"auth": "Bearer sk_test", "path": "/transaction/verify/ref-1"}

    @pytest.mark.asyncio
    async def test_initialize_sends_minor_units(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured.update(json.loads(request.content))
            return httpx.Response(200, json={
                "status": True,
                "data": {"authorization_url": "https://checkout.test/abc", "reference": "r1"},
            })

        data = await paystack_with(handler).initialize_transaction(
            "ada@example.com", Decimal("1500.50"), currency="ngn", reference="r1"
        )
        assert data["authorization_url"] == "https://checkout.test/abc"
        assert captured == {"email": "ada@example.com", "amount": 150050, "currency": "NGN", "reference": "r1"}

    @pytest.mark.asyncio
    async def test_http_error_becomes_gateway_error(self):
        service = paystack_with(lambda request: httpx.Response(400, json={"status": False}))
        with pytest.raises(PaymentGatewayError):
            await service.verify_payment("ref-1")

    @pytest.mark.asyncio
    async def test_false_status_becomes_gateway_error(self):
        service = paystack_with(
            lambda request: httpx.Response(200, json={"status": False, "message": "Transaction reference not found"})
        )
        with pytest.raises(PaymentGatewayError, match="reference not found"):
            await service.verify_payment("ref-1")

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with pytest.raises(PaymentGatewayError):
            await PaystackService(secret_key=None).verify_payment("ref-1")


class TestCreateDonation:

    def donation(self, **overrides):
        donation = {"amount": 5000, "currency": "NGN", "method": "card", "category": "tithe"}
        donation.update(overrides)
        return donation

    @pytest.mark.asyncio
    async def test_without_reference_is_pending(self):
        service = GivingService()
        with patch.object(service, "record_giving", new=AsyncMock(return_value=ServiceResult(success=True))) as record:
            await service.create_donation("m1", self.donation())
        saved = record.await_args.args[0]
        assert saved["payment_status"] == "pending"
        assert saved["amount"] == Decimal("5000")

    @pytest.mark.asyncio
    async def test_duplicate_reference_is_conflict(self):
        service = GivingService()
        existing = ServiceResult(success=True, data=[{"giving_id": "g1"}], count=1)
        with patch.object(service, "read", new=AsyncMock(return_value=existing)):
            result = await service.create_donation("m1", self.donation(reference="ref-1"))
        assert result.success is False
        assert result.error_type == "CONFLICT"

    @pytest.mark.asyncio
    async def test_verified_payment_is_completed(self):
        service = GivingService()
        paystack = AsyncMock()
        paystack.verify_payment.return_value = {
            "status": "success", "amount": 500000, "currency": "NGN", "paid_at": "2026-03-01T10:00:00Z"
        }
        with patch.object(service, "read", new=AsyncMock(return_value=ServiceResult(success=True, data=[]))), \
                patch.object(service, "record_giving", new=AsyncMock(return_value=ServiceResult(success=True))) as record, \
                patch("services.giving_service.get_paystack_service", return_value=paystack):
            await service.create_donation("m1", self.donation(reference="ref-1"))

        saved = record.await_args.args[0]
        assert saved["payment_status"] == "completed"
        assert saved["payment_reference"] == "ref-1"
        assert saved["date"].isoformat() == "2026-03-01T10:00:00+00:00"

    @pytest.mark.asyncio
    async def test_amount_mismatch_is_payment_required(self):
        service = GivingService()
        paystack = AsyncMock()
        paystack.verify_payment.return_value = {"status": "success", "amount": 100, "currency": "NGN"}
        with patch.object(service, "read", new=AsyncMock(return_value=ServiceResult(success=True, data=[]))), \
                patch("services.giving_service.get_paystack_service", return_value=paystack):
            result = await service.create_donation("m1", self.donation(reference="ref-1"))
        assert result.error_type == "PAYMENT_REQUIRED"

    @pytest.mark.asyncio
    async def test_gateway_failure_is_payment_required(self):
        service = GivingService()
        paystack = AsyncMock()
        paystack.verify_payment.side_effect = PaymentGatewayError("Paystack is unreachable")
        with patch.object(service, "read", new=AsyncMock(return_value=ServiceResult(success=True, data=[]))), \
                patch("services.giving_service.get_paystack_service", return_value=paystack):
            result = await service.create_donation("m1", self.donation(reference="ref-1"))
        assert result.error_type == "PAYMENT_REQUIRED"
