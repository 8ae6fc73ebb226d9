"""
Mobile-money payments through a CinetPay-style gateway.

This module only shapes requests and responses; the gateway itself is any
object implementing MobileMoneyGateway.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Protocol

from utils.config import settings
from utils.logger import get_logger
from utils.pure import generate_reference

_logger = get_logger(__name__)

PaymentStatus = Literal["success", "error", "pending"]

CODE_INITIATED = "201"
CODE_ACCEPTED = "00"
CODE_WAITING = "600"
CODE_AUTH_NOT_FOUND = "609"


@dataclass(frozen=True)
class PaymentRequest:
    amount: int
    currency: str
    transaction_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    description: str
    payment_method: str = "MOBILE_MONEY"


@dataclass(frozen=True)
class PaymentResponse:
    status: PaymentStatus
    message: str
    transaction_id: Optional[str] = None
    payment_url: Optional[str] = None


class MobileMoneyGateway(Protocol):
    async def make_payment(self, params: Dict[str, Any]) -> Dict[str, Any]: ...

    async def check_payment_status(self, transaction_id: str) -> Dict[str, Any]: ...


def generate_transaction_id() -> str:
    return generate_reference("XN-PAY")


def order_payment_request(
    order_id: str,
    amount: int,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    currency: Optional[str] = None,
) -> PaymentRequest:
    """Mobile-money request for an order, with a fresh transaction id."""
    return PaymentRequest(
        amount=amount,
        currency=currency or settings.currency,
        transaction_id=generate_transaction_id(),
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        description=f"Payment for order {order_id}",
    )


def build_payment_params(request: PaymentRequest, base_url: str) -> Dict[str, Any]:
    base_url = base_url.rstrip("/")
    return {
        "transaction_id": request.transaction_id,
        "amount": request.amount,
        "currency": request.currency,
        "channels": request.payment_method,
        "description": request.description,
        "customer_name": request.customer_name,
        "customer_email": request.customer_email,
        "customer_phone_number": request.customer_phone,
        "payment_url": f"{base_url}/payment/callback",
        "return_url": f"{base_url}/payment/return",
        "notify_url": f"{base_url}/payment/notify",
    }


async def process_mobile_payment(
    gateway: MobileMoneyGateway,
    request: PaymentRequest,
    base_url: Optional[str] = None,
) -> PaymentResponse:
    """
    Start a payment. A "201" answer means the customer still has to confirm
    on their phone, so the result is pending; anything else is an error.
    Gateway failures are reported as an error response, never raised.
    """
    params = build_payment_params(request, base_url or settings.payment_base_url)
    _logger.info(f"Initiating payment {request.transaction_id} for {request.amount}")
    try:
        result = await gateway.make_payment(params)
    except Exception as e:
        _logger.exception(f"Payment {request.transaction_id} failed")
        return PaymentResponse(status="error", message=str(e) or "Payment processing failed")

    if result and str(result.get("code")) == CODE_INITIATED:
        return PaymentResponse(
            status="pending",
            transaction_id=request.transaction_id,
            message="Payment initiated successfully",
            payment_url=(result.get("data") or {}).get("payment_url"),
        )
    return PaymentResponse(
        status="error",
        transaction_id=request.transaction_id,
        message=(result or {}).get("message") or "Failed to initialize payment",
    )


async def verify_payment(gateway: MobileMoneyGateway, transaction_id: str) -> PaymentResponse:
    _logger.info(f"Verifying payment {transaction_id}")
    try:
        result = await gateway.check_payment_status(transaction_id)
    except Exception as e:
        _logger.exception(f"Verification of {transaction_id} failed")
        return PaymentResponse(status="error", message=str(e) or "Payment verification failed")

    code = str((result or {}).get("code"))
    if code == CODE_ACCEPTED:
        return PaymentResponse(
            status="success", transaction_id=transaction_id, message="Payment confirmed"
        )
    if code == CODE_WAITING:
        return PaymentResponse(
            status="pending",
            transaction_id=transaction_id,
            message="Payment is still being processed",
        )
    return PaymentResponse(
        status="error",
        transaction_id=transaction_id,
        message=(result or {}).get("message") or "Payment verification failed",
    )


class SimulatedGateway:
    """
    Stand-in gateway for demos: accepts every payment after a fixed delay.
    Phone numbers ending in "0000" are declined.

    Like the CinetPay client it is built with the merchant site id and API
    key, which are sent along with every payment. Configuring only one of
    the two is refused the way the real gateway refuses unknown merchants.
    """

    def __init__(self, site_id: str = "", api_key: str = "", delay: float = 1.0) -> None:
        self.site_id = site_id
        self.api_key = api_key
        self.delay = delay
        self.payments: Dict[str, Dict[str, Any]] = {}

    async def make_payment(self, params: Dict[str, Any]) -> Dict[str, Any]:
        await asyncio.sleep(self.delay)
        if bool(self.site_id) != bool(self.api_key):
            return {"code": CODE_AUTH_NOT_FOUND, "message": "AUTH_NOT_FOUND"}
        if str(params.get("customer_phone_number", "")).endswith("0000"):
            return {"code": "400", "message": "Mobile money number rejected"}
        self.payments[params["transaction_id"]] = {
            "apikey": self.api_key,
            "site_id": self.site_id,
            **params,
        }
        return {
            "code": CODE_INITIATED,
            "data": {"payment_url": f"{params['payment_url']}?tx={params['transaction_id']}"},
        }

    async def check_payment_status(self, transaction_id: str) -> Dict[str, Any]:
        await asyncio.sleep(self.delay)
        if transaction_id not in self.payments:
            return {"code": "404", "message": "Unknown transaction"}
        return {"code": CODE_ACCEPTED, "message": "SUCCES"}
