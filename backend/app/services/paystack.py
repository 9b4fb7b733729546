"""Thin Paystack client covering the initialize/verify contract.

Paystack amounts are integers in the currency's minor unit (cents for ZAR);
everything outside this module works in Decimal currency units.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

import httpx

from ..core.config import settings
from ..utils.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)

_MINOR_UNITS = Decimal("100")


def to_minor_units(amount: Any) -> int:
    """ZAR 20.25 -> 2025."""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * _MINOR_UNITS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: Any) -> Decimal:
    return (Decimal(int(amount or 0)) / _MINOR_UNITS).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class PaymentInit:
    authorization_url: str
    access_code: Optional[str]
    reference: str


@dataclass(frozen=True)
class PaymentVerification:
    reference: str
    status: str
    id: Optional[str]
    amount: Decimal
    metadata: dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


class PaystackClient:
    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        callback_url: str | None = None,
        timeout: float = 10.0,
        currency: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        if not secret_key:
            raise ExternalServiceFailure("Payment gateway is not configured")
        self.base_url = base_url.rstrip("/")
        self.callback_url = callback_url
        self.currency = currency
        self._timeout = timeout
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {secret_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, json: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = client.request(method, url, json=json)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Paystack request rejected",
                extra={"path": path, "status_code": exc.response.status_code},
            )
            raise ExternalServiceFailure("Payment gateway rejected the request") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Paystack request failed: %s", exc, extra={"path": path})
            raise ExternalServiceFailure("Payment gateway is unavailable") from exc

        if not isinstance(body, dict) or not body.get("status") or not isinstance(body.get("data"), dict):
            message = body.get("message") if isinstance(body, dict) else None
            logger.error("Paystack returned an error", extra={"path": path, "gateway_message": message})
            raise ExternalServiceFailure(message or "Payment gateway returned an invalid response")
        return body["data"]

    def initialize_transaction(
        self,
        email: str,
        amount: Decimal,
        metadata: dict | None = None,
        reference: str | None = None,
    ) -> PaymentInit:
        payload: dict[str, Any] = {
            "email": email,
            "amount": to_minor_units(amount),
            "metadata": metadata or {},
        }
        if self.currency:
            payload["currency"] = self.currency
        if self.callback_url:
            payload["callback_url"] = self.callback_url
        if reference:
            payload["reference"] = reference

        data = self._request("POST", "/transaction/initialize", json=payload)
        auth_url = data.get("authorization_url")
        ref = data.get("reference")
        if not auth_url or not ref:
            raise ExternalServiceFailure("Payment gateway returned an invalid response")
        return PaymentInit(
            authorization_url=auth_url,
            access_code=data.get("access_code"),
            reference=ref,
        )

    def verify_transaction(self, reference: str) -> PaymentVerification:
        data = self._request("GET", f"/transaction/verify/{reference}")
        metadata = data.get("metadata")
        gateway_id = data.get("id")
        return PaymentVerification(
            reference=data.get("reference") or reference,
            status=str(data.get("status", "")).lower(),
            id=str(gateway_id) if gateway_id is not None else None,
            amount=from_minor_units(data.get("amount")),
            metadata=metadata if isinstance(metadata, dict) else {},
        )


def get_paystack_client() -> PaystackClient:
    """FastAPI dependency building a client from settings."""
    return PaystackClient(
        secret_key=settings.PAYSTACK_SECRET_KEY,
        base_url=settings.PAYSTACK_BASE_URL,
        callback_url=settings.payment_callback_url,
        timeout=settings.PAYSTACK_TIMEOUT_SECONDS,
        currency=settings.DEFAULT_CURRENCY,
    )
