"""
Paystack payment gateway client
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Any, List, Optional

import httpx

from config.settings import PAYSTACK_SECRET_KEY, PAYSTACK_BASE_URL, PAYSTACK_TIMEOUT_SECONDS
from utils.helpers import is_valid_email

logger = logging.getLogger(__name__)

# Smallest accepted amount per currency, in major units
MINIMUM_AMOUNTS = {
    "NGN": Decimal("100"),
    "USD": Decimal("1"),
    "GHS": Decimal("1"),
    "ZAR": Decimal("10"),
    "KES": Decimal("100"),
}
SUPPORTED_CURRENCIES = list(MINIMUM_AMOUNTS.keys())


class PaymentGatewayError(Exception):
    """Raised when Paystack is unreachable or answers with an error"""


def to_minor_units(amount) -> int:
    """Major units to kobo/cents, rounding half up"""
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(int(amount)) / 100).quantize(Decimal("0.01"))


def validate_payment_data(amount, currency: str, email: Optional[str]) -> List[str]:
    """Collect every problem with a payment request; an empty list means it is valid"""
    errors = []
    currency = (currency or "").upper()

    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        value = None
    if value is not None and not value.is_finite():
        value = None

    if value is None or value <= 0:
        errors.append("Amount must be greater than 0")

    if currency not in MINIMUM_AMOUNTS:
        errors.append(f"Currency must be one of: {', '.join(SUPPORTED_CURRENCIES)}")
    elif value is not None and value > 0 and value < MINIMUM_AMOUNTS[currency]:
        errors.append(f"Minimum amount for {currency} is {MINIMUM_AMOUNTS[currency]}")

    if not is_valid_email(email):
        errors.append("A valid email address is required")

    return errors


class PaystackService:
    """Async client for the Paystack transaction API"""

    def __init__(self, secret_key: Optional[str] = PAYSTACK_SECRET_KEY, base_url: str = PAYSTACK_BASE_URL,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        if not self.is_configured:
            raise PaymentGatewayError("Payment gateway is not configured")

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=PAYSTACK_TIMEOUT_SECONDS,
                transport=self.transport
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Paystack {method} {path} failed: {e.response.status_code} - {e.response.text}")
            raise PaymentGatewayError(f"Paystack returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Paystack {method} {path} unreachable: {e}")
            raise PaymentGatewayError("Paystack is unreachable") from e

        if not body.get("status"):
            raise PaymentGatewayError(body.get("message") or "Paystack request failed")
        return body.get("data") or {}

    async def verify_payment(self, reference: str) -> Dict[str, Any]:
        """
        Verify a transaction by reference

        Returns:
            Paystack transaction data (status, amount in minor units, currency, customer, ...)
        """
        logger.info(f"Verifying Paystack transaction {reference}")
        return await self._request("GET", f"/transaction/verify/{reference}")

    async def initialize_transaction(
        self,
        email: str,
        amount,
        currency: str = "NGN",
        reference: Optional[str] = None,
        callback_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Start a checkout; returns authorization_url, access_code and reference"""
        payload: Dict[str, Any] = {
            "email": email,
            "amount": to_minor_units(amount),
            "currency": currency.upper(),
        }
        if reference:
            payload["reference"] = reference
        if callback_url:
            payload["callback_url"] = callback_url
        if metadata:
            payload["metadata"] = metadata

        logger.info(f"Initializing Paystack transaction for {email}: {amount} {currency}")
        return await self._request("POST", "/transaction/initialize", json=payload)

    async def list_transactions(self, per_page: int = 50, page: int = 1) -> Dict[str, Any]:
        return await self._request("GET", "/transaction", params={"perPage": per_page, "page": page})


def is_successful_payment(transaction: Dict[str, Any], expected_amount, expected_currency: Optional[str] = None) -> bool:
    """A verified transaction counts only when it succeeded for the expected amount"""
    if transaction.get("status") != "success":
        return False
    if int(transaction.get("amount") or 0) != to_minor_units(expected_amount):
        return False
    if expected_currency and transaction.get("currency") and \
            transaction["currency"].upper() != expected_currency.upper():
        return False
    return True


# Global service instance
_paystack_service: Optional[PaystackService] = None


def get_paystack_service() -> PaystackService:
    """Get the global Paystack service instance"""
    global _paystack_service
    if _paystack_service is None:
        _paystack_service = PaystackService()
    return _paystack_service
